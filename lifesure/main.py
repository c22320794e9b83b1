import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from lifesure.core import config
from lifesure.core.context import AppContext, build_context, get_context
from lifesure.core.errors import UpstreamFailure, register_exception_handlers
from lifesure.database import init_schema, ping
from lifesure.routes import (
    admin_routes,
    agent_routes,
    application_routes,
    blog_routes,
    claim_routes,
    payment_routes,
    policy_routes,
    review_routes,
    user_routes,
)

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    config.validate_runtime_config()

    context = build_context()
    try:
        init_schema(context.engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL or DB_USER/DB_PASS/DB_HOST.')
        raise

    app.state.context = context
    logger.info('LifeSure API ready (env=%s)', config.APP_ENV)
    yield
    context.engine.dispose()


app = FastAPI(title='LifeSure API', lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

register_exception_handlers(app)


@app.get('/')
def root():
    return {'status': 'LifeSure Server is running successfully!'}


@app.get('/health')
def health(context: AppContext = Depends(get_context)):
    try:
        ping(context.engine)
    except SQLAlchemyError as exc:
        raise UpstreamFailure('Database unavailable', error=str(exc)) from exc
    return {'success': True, 'status': 'ok', 'env': config.APP_ENV}


app.include_router(user_routes.router)
app.include_router(policy_routes.router)
app.include_router(application_routes.router)
app.include_router(review_routes.router)
app.include_router(payment_routes.router)
app.include_router(claim_routes.router)
app.include_router(blog_routes.router)
app.include_router(agent_routes.router)
app.include_router(admin_routes.router)


def run() -> None:
    uvicorn.run('lifesure.main:app', host=config.HOST, port=config.PORT)


if __name__ == '__main__':
    run()
