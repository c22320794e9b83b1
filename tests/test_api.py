from lifesure.core.constants import Role
from lifesure.models.application import Application
from lifesure.models.policy import Policy
from lifesure.models.user import User

POLICY_PAYLOAD = {
    'title': 'Term Life Secure',
    'category': 'Life',
    'description': 'Level cover for twenty years',
    'minAge': 18,
    'maxAge': 65,
    'coverageMin': 50000,
    'coverageMax': 1000000,
    'basePremium': 45.5,
    'duration': '20 years',
}


def test_root_reports_running(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'LifeSure Server is running successfully!'}


def test_health_pings_store(client) -> None:
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json()['status'] == 'ok'


def test_missing_bearer_token_is_unauthorized(client) -> None:
    response = client.get('/customer/applications')

    assert response.status_code == 401
    assert response.json() == {'success': False, 'message': 'Unauthorized access'}


def test_invalid_bearer_token_is_forbidden(client) -> None:
    response = client.get('/customer/applications', headers={'Authorization': 'Bearer garbage'})

    assert response.status_code == 403
    assert response.json() == {'success': False, 'message': 'Forbidden access'}


def test_verified_token_for_unknown_user_is_not_found(client, auth_headers) -> None:
    response = client.get('/customer/applications', headers=auth_headers('ghost'))

    assert response.status_code == 404
    assert response.json()['message'] == 'User not found'


def test_customer_cannot_reach_admin_routes(client, make_user, auth_headers) -> None:
    make_user('cust-1')

    response = client.post('/admin/policies', json=POLICY_PAYLOAD, headers=auth_headers('cust-1'))

    assert response.status_code == 403
    assert response.json() == {'success': False, 'message': 'Access denied. Admin role required.'}


def test_user_registration_then_login_keeps_role(client, db) -> None:
    created = client.post('/users', json={'uid': 'new-1', 'email': 'new@example.com', 'displayName': 'New'})
    db.query(User).filter(User.uid == 'new-1').update({User.role: Role.ADMIN.value})
    db.commit()
    refreshed = client.post('/users', json={'uid': 'new-1', 'email': 'new@example.com'})

    assert created.status_code == 201
    assert created.json()['user']['role'] == 'customer'
    assert refreshed.status_code == 200
    assert refreshed.json()['user']['role'] == 'admin'
    assert refreshed.json()['user']['displayName'] == 'New'


def test_own_profile_round_trip(client, make_user, auth_headers) -> None:
    make_user('cust-1', display_name='Before')

    updated = client.patch('/profile', json={'displayName': 'After'}, headers=auth_headers('cust-1'))
    profile = client.get('/profile', headers=auth_headers('cust-1'))

    assert updated.status_code == 200
    assert profile.json()['user']['displayName'] == 'After'
    assert profile.json()['user']['role'] == 'customer'


def test_admin_policy_lifecycle(client, db, make_user, auth_headers) -> None:
    make_user('admin-1', Role.ADMIN)
    headers = auth_headers('admin-1')

    created = client.post('/admin/policies', json=POLICY_PAYLOAD, headers=headers)
    policy_id = created.json()['policy']['id']
    updated = client.put(f'/policies/{policy_id}', json={'basePremium': 50}, headers=headers)
    fetched = client.get(f'/policies/{policy_id}')
    deleted = client.delete(f'/admin/policies/{policy_id}', headers=headers)
    missing = client.delete(f'/admin/policies/{policy_id}', headers=headers)

    assert created.status_code == 201
    assert created.json()['policy']['applicationsCount'] == 0
    assert updated.json()['policy']['basePremium'] == 50.0
    assert fetched.json()['policy']['title'] == 'Term Life Secure'
    assert deleted.json() == {'success': True, 'message': 'Policy deleted successfully'}
    assert missing.status_code == 404
    assert missing.json() == {'success': False, 'message': 'Policy not found'}
    assert db.query(Policy).count() == 0


def test_create_policy_with_missing_field_is_bad_request(client, db, make_user, auth_headers) -> None:
    make_user('admin-1', Role.ADMIN)
    payload = {key: value for key, value in POLICY_PAYLOAD.items() if key != 'category'}

    response = client.post('/policies', json=payload, headers=auth_headers('admin-1'))

    assert response.status_code == 400
    assert response.json() == {'success': False, 'message': 'Missing required fields: category'}
    assert db.query(Policy).count() == 0


def test_malformed_query_parameter_is_bad_request(client) -> None:
    response = client.get('/policies', params={'page': 'first'})

    assert response.status_code == 400
    assert response.json()['success'] is False
    assert 'page' in response.json()['message']


def test_public_policy_listing_paginates(client, make_policy) -> None:
    for index in range(15):
        make_policy(f'Policy {index:02d}')

    response = client.get('/policies', params={'page': 2, 'limit': 10})

    body = response.json()
    assert len(body['policies']) == 5
    assert body['pagination']['hasNext'] is False
    assert body['pagination']['hasPrev'] is True
    assert body['pagination']['totalPages'] == 2


def test_top_policies_route_is_not_shadowed_by_policy_id(client, make_policy) -> None:
    make_policy('Popular', applications_count=10)

    response = client.get('/policies/top-policies')

    assert response.status_code == 200
    assert response.json()['policies'][0]['title'] == 'Popular'


def test_application_submission_increments_counter(client, db, make_user, make_policy, auth_headers) -> None:
    make_user('cust-1')
    policy = make_policy()

    response = client.post(
        '/customer/applications',
        json={'policyId': policy.id, 'status': 'approved', 'nominee': 'Sam'},
        headers=auth_headers('cust-1'),
    )
    mine = client.get('/customer/applications', headers=auth_headers('cust-1'))

    db.expire_all()
    assert response.status_code == 201
    assert response.json()['application']['status'] == 'pending'
    assert response.json()['application']['details'] == {'status': 'approved', 'nominee': 'Sam'}
    assert db.query(Policy).filter(Policy.id == policy.id).one().applications_count == 1
    assert mine.json()['applications'][0]['policyName'] == 'Family Shield'


def test_application_for_missing_policy_is_not_found(client, db, make_user, auth_headers) -> None:
    make_user('cust-1')

    response = client.post('/customer/applications', json={'policyId': 999}, headers=auth_headers('cust-1'))

    assert response.status_code == 404
    assert db.query(Application).count() == 0


def test_duplicate_review_is_bad_request(client, make_user, make_policy, auth_headers) -> None:
    make_user('cust-1')
    policy = make_policy()
    payload = {'rating': 5, 'feedback': 'Great', 'policyId': policy.id}

    first = client.post('/reviews', json=payload, headers=auth_headers('cust-1'))
    second = client.post('/reviews', json=payload, headers=auth_headers('cust-1'))
    listed = client.get('/reviews', params={'policyId': policy.id})

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.json()['message'] == 'You have already reviewed this policy'
    assert len(listed.json()['reviews']) == 1


def test_payment_flow_uses_gateway(client, make_user, auth_headers, payments) -> None:
    make_user('cust-1')
    headers = auth_headers('cust-1')

    intent = client.post('/customer/create-payment-intent', json={'amount': 45.5, 'policyId': 1}, headers=headers)
    confirmed = client.post(
        '/confirm-payment',
        json={'paymentIntentId': intent.json()['paymentIntentId'], 'policyId': 1, 'amount': 45.5},
        headers=headers,
    )
    history = client.get('/customer/payments', headers=headers)

    assert intent.json()['clientSecret'] == 'pi_test_1_secret'
    assert len(payments.calls) == 1
    assert confirmed.json()['payment']['status'] == 'completed'
    assert [payment['paymentIntentId'] for payment in history.json()['payments']] == ['pi_test_1']


def test_admin_self_delete_is_refused(client, db, make_user, auth_headers) -> None:
    make_user('admin-1', Role.ADMIN)

    response = client.delete('/admin/users/admin-1', headers=auth_headers('admin-1'))

    assert response.status_code == 400
    assert response.json()['message'] == 'Cannot delete your own account'
    assert db.query(User).filter(User.uid == 'admin-1').count() == 1


def test_agent_promotion_flow(client, db, make_user, auth_headers) -> None:
    make_user('admin-1', Role.ADMIN)
    make_user('cust-1')

    applied = client.post('/apply-agent', json={'reason': 'Hire me'}, headers=auth_headers('cust-1'))
    approved = client.patch(
        '/admin/agent-applications/cust-1',
        json={'action': 'approve'},
        headers=auth_headers('admin-1'),
    )
    blog = client.post('/agent/blogs', json={'title': 'Hello', 'content': 'World'}, headers=auth_headers('cust-1'))

    db.expire_all()
    assert applied.status_code == 200
    assert approved.json()['message'] == 'Agent application approved successfully'
    assert db.query(User).filter(User.uid == 'cust-1').one().role == 'agent'
    assert blog.status_code == 201


def test_only_customers_may_submit_applications(client, db, make_user, make_policy, auth_headers) -> None:
    make_user('agent-1', Role.AGENT)
    make_user('admin-1', Role.ADMIN)
    policy = make_policy()

    agent = client.post('/customer/applications', json={'policyId': policy.id}, headers=auth_headers('agent-1'))
    admin = client.post('/customer/applications', json={'policyId': policy.id}, headers=auth_headers('admin-1'))

    db.expire_all()
    assert agent.status_code == 403
    assert agent.json() == {'success': False, 'message': 'Access denied. Customer role required.'}
    assert admin.status_code == 403
    assert db.query(Application).count() == 0
    assert db.query(Policy).filter(Policy.id == policy.id).one().applications_count == 0
