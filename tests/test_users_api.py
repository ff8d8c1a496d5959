"""
User, worker, notification and admin HTTP tests
"""
import json

from servicehub import bidding


class TestUserEndpoints:
    """Test /api/users"""

    def test_list_users_by_role(self, client, test_customer, worker_factory):
        worker_factory()

        response = client.get('/api/users?role=WORKER')

        assert response.status_code == 200
        data = json.loads(response.data)
        assert len(data) == 1
        assert data[0]['role'] == 'WORKER'

    def test_list_users_bad_role(self, client):
        assert client.get('/api/users?role=OWNER').status_code == 400

    def test_get_user(self, client, test_customer):
        response = client.get(f'/api/users/{test_customer.id}')
        assert response.status_code == 200
        assert json.loads(response.data)['fullName'] == 'Asha Customer'

    def test_get_missing_user(self, client):
        assert client.get('/api/users/999').status_code == 404

    def test_admin_approves_user(self, client, admin_headers, worker_factory):
        worker = worker_factory(active=False)

        response = client.patch(f'/api/users/{worker.id}', headers=admin_headers, json={'isActive': True})

        assert response.status_code == 200
        assert json.loads(response.data)['isActive'] is True

    def test_approval_requires_admin(self, client, customer_headers, worker_factory):
        worker = worker_factory(active=False)

        response = client.patch(f'/api/users/{worker.id}', headers=customer_headers, json={'isActive': True})

        assert response.status_code == 403
        assert worker.is_active is False

    def test_approval_requires_token(self, client, test_worker):
        response = client.patch(f'/api/users/{test_worker.id}', json={'isActive': False})
        assert response.status_code == 401

    def test_approve_missing_user(self, client, admin_headers):
        response = client.patch('/api/users/999', headers=admin_headers, json={'isActive': True})
        assert response.status_code == 404


class TestWorkerEndpoints:
    """Test /api/workers"""

    def test_list_eligible_workers(self, client, worker_factory):
        eligible = worker_factory()
        worker_factory(verified=False)

        response = client.get('/api/workers?eligible=true&category=plumbing')

        assert response.status_code == 200
        data = json.loads(response.data)
        assert [worker['userId'] for worker in data] == [eligible.id]
        assert data[0]['isEligible'] is True
        assert 'accountNumber' not in data[0]

    def test_list_all_workers(self, client, worker_factory):
        worker_factory()
        worker_factory(active=False)

        data = json.loads(client.get('/api/workers').data)
        assert len(data) == 2
        assert sorted(worker['isEligible'] for worker in data) == [False, True]

    def test_bad_eligible_flag(self, client):
        assert client.get('/api/workers?eligible=perhaps').status_code == 400

    def test_get_worker(self, client, test_worker):
        response = client.get(f'/api/workers/{test_worker.id}')
        assert response.status_code == 200
        assert json.loads(response.data)['user']['id'] == test_worker.id

    def test_get_worker_for_customer_id(self, client, test_customer):
        assert client.get(f'/api/workers/{test_customer.id}').status_code == 404

    def test_onboarding_status(self, client, worker_factory):
        worker = worker_factory(verified=False)

        response = client.get(f'/api/workers/{worker.id}/onboarding')

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['isEligible'] is False
        assert data['blockers'] == ['documents not verified']

    def test_admin_verifies_worker(self, client, admin_headers, worker_factory):
        worker = worker_factory(verified=False)

        response = client.patch(f'/api/workers/{worker.id}', headers=admin_headers,
                                json={'isVerified': True, 'ifscCode': 'HDFC0001234'})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['isVerified'] is True
        assert data['ifscCode'] == 'HDFC0001234'

    def test_verification_requires_admin(self, client, customer_headers, worker_factory):
        worker = worker_factory(verified=False)
        response = client.patch(f'/api/workers/{worker.id}', headers=customer_headers,
                                json={'isVerified': True})
        assert response.status_code == 403

    def test_verify_bad_flag(self, client, admin_headers, test_worker):
        response = client.patch(f'/api/workers/{test_worker.id}', headers=admin_headers,
                                json={'isVerified': 'sometimes'})
        assert response.status_code == 400


class TestNotificationEndpoints:
    """Test /api/notifications"""

    def test_list_and_mark_read(self, client, test_job, test_worker, bid_factory):
        bid = bid_factory(test_job, test_worker)
        bidding.award_bid(test_job.id, bid.id)

        response = client.get(f'/api/notifications/{test_worker.id}')
        assert response.status_code == 200
        items = json.loads(response.data)
        assert [item['type'] for item in items] == ['bid_accepted']

        read = client.patch(f'/api/notifications/{items[0]["id"]}/read')
        assert read.status_code == 200
        assert json.loads(read.data)['isRead'] is True

        unread = json.loads(client.get(f'/api/notifications/{test_worker.id}?unread=true').data)
        assert unread == []

    def test_mark_missing_notification(self, client):
        assert client.patch('/api/notifications/999/read').status_code == 404


class TestAdminStats:
    """Test /api/admin/stats"""

    def test_stats_counts(self, client, admin_headers, test_job, test_worker, worker_factory, bid_factory):
        worker_factory(active=False)
        bid = bid_factory(test_job, test_worker, amount=450)
        bidding.award_bid(test_job.id, bid.id)
        bidding.complete_job(test_job.id)

        response = client.get('/api/admin/stats', headers=admin_headers)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['totalUsers'] == 4
        assert data['totalCustomers'] == 1
        assert data['totalWorkers'] == 2
        assert data['eligibleWorkers'] == 1
        assert data['pendingApprovals'] == 1
        assert data['totalJobs'] == 1
        assert data['jobsByStatus']['completed'] == 1
        assert data['jobsByStatus']['open'] == 0
        assert data['revenue'] == 450.0


class TestErrorRendering:
    """Test JSON errors and response headers"""

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/nowhere')
        assert response.status_code == 404
        assert 'error' in json.loads(response.data)

    def test_method_not_allowed_is_json(self, client):
        response = client.put('/api/jobs')
        assert response.status_code == 405
        assert 'error' in json.loads(response.data)

    def test_request_id_and_security_headers(self, client):
        response = client.get('/health', headers={'X-Request-ID': 'trace-123'})

        assert response.headers['X-Request-ID'] == 'trace-123'
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'DENY'

    def test_request_id_generated(self, client):
        assert client.get('/health').headers.get('X-Request-ID')
