"""
Job and bid HTTP contract tests
"""
import json

import pytest

from conftest import job_payload


class TestJobEndpoints:
    """Test /api/jobs"""

    def test_post_job(self, client, test_customer):
        """Test posting a job returns the created job"""
        response = client.post('/api/jobs', json=job_payload(customerId=test_customer.id))

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data['status'] == 'open'
        assert data['customerId'] == test_customer.id
        assert data['totalBids'] == 0
        assert data['selectedBidId'] is None
        assert data['address']['city'] == 'Pune'

    def test_post_then_get_round_trip(self, client, test_customer):
        created = json.loads(client.post('/api/jobs', json=job_payload(customerId=test_customer.id)).data)

        response = client.get(f'/api/jobs/{created["id"]}')

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['status'] == 'open'
        assert data['selectedBidId'] is None
        assert data['totalBids'] == 0
        assert data['referenceNumber'] == created['referenceNumber']

    def test_post_job_validation_error(self, client, test_customer):
        response = client.post('/api/jobs', json={'customerId': test_customer.id, 'category': 'REMOTE'})

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data['error'] == 'Validation failed'
        assert 'title' in data['fields']

    def test_post_job_non_string_title(self, client, test_customer):
        response = client.post('/api/jobs', json=job_payload(customerId=test_customer.id, title=123))

        assert response.status_code == 400
        assert json.loads(response.data)['fields']['title'] == 'Must be a string'

    def test_post_job_missing_customer(self, client):
        response = client.post('/api/jobs', json=job_payload(customerId=999))
        assert response.status_code == 404

    def test_post_job_requires_json_object(self, client):
        response = client.post('/api/jobs', json=['not', 'an', 'object'])
        assert response.status_code == 400

    def test_inputs_are_html_escaped(self, client, test_customer):
        response = client.post('/api/jobs', json=job_payload(
            customerId=test_customer.id, title='<b>Fix sink</b>'))

        assert response.status_code == 201
        assert json.loads(response.data)['title'] == '&lt;b&gt;Fix sink&lt;/b&gt;'

    def test_list_jobs_with_filters(self, client, job_factory):
        job_factory(serviceType='plumbing')
        job_factory(serviceType='electrical')

        response = client.get('/api/jobs?serviceType=electrical&status=open')

        assert response.status_code == 200
        data = json.loads(response.data)
        assert len(data) == 1
        assert data[0]['serviceType'] == 'electrical'

    def test_list_jobs_bad_filter(self, client):
        assert client.get('/api/jobs?status=done').status_code == 400
        assert client.get('/api/jobs?customerId=abc').status_code == 400

    def test_get_missing_job(self, client):
        response = client.get('/api/jobs/999')
        assert response.status_code == 404
        assert json.loads(response.data)['error'] == 'Job not found'

    def test_patch_status(self, client, test_job):
        response = client.patch(f'/api/jobs/{test_job.id}', json={'status': 'cancelled'})

        assert response.status_code == 200
        assert json.loads(response.data)['status'] == 'cancelled'

    def test_patch_invalid_transition(self, client, test_job):
        response = client.patch(f'/api/jobs/{test_job.id}', json={'status': 'completed'})
        assert response.status_code == 409

    def test_delete_job(self, client, test_job):
        response = client.delete(f'/api/jobs/{test_job.id}')

        assert response.status_code == 200
        assert client.get(f'/api/jobs/{test_job.id}').status_code == 404


class TestBidEndpoints:
    """Test /api/bids and the select-bid action"""

    def test_submit_bid(self, client, test_job, test_worker):
        response = client.post('/api/bids', json={
            'jobId': test_job.id,
            'workerId': test_worker.id,
            'amount': 450,
            'coverLetter': 'Can come this evening',
        })

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data['status'] == 'pending'
        assert data['workerName'] == 'Ravi Worker'
        assert json.loads(client.get(f'/api/jobs/{test_job.id}').data)['totalBids'] == 1

    def test_ineligible_worker_gets_403(self, client, test_job, worker_factory):
        worker = worker_factory(verified=False)

        response = client.post('/api/bids', json={
            'jobId': test_job.id,
            'workerId': worker.id,
            'amount': 450,
            'coverLetter': 'Can come this evening',
        })

        assert response.status_code == 403
        data = json.loads(response.data)
        assert 'documents not verified' in data['fields']['workerId']

    @pytest.mark.parametrize('overrides, field, message', [
        ({'coverLetter': ['x']}, 'coverLetter', 'Must be a string'),
        ({'amount': 'NaN'}, 'amount', 'Must be a number'),
        ({'amount': 'Infinity'}, 'amount', 'Must be a number'),
    ])
    def test_submit_bid_bad_input_gets_400(self, client, test_job, test_worker, overrides, field, message):
        payload = {
            'jobId': test_job.id,
            'workerId': test_worker.id,
            'amount': 450,
            'coverLetter': 'Can come this evening',
        }
        payload.update(overrides)

        response = client.post('/api/bids', json=payload)

        assert response.status_code == 400
        assert json.loads(response.data)['fields'][field] == message
        assert json.loads(client.get(f'/api/jobs/{test_job.id}').data)['totalBids'] == 0

    def test_duplicate_bid_gets_409(self, client, test_job, test_worker, bid_factory):
        bid_factory(test_job, test_worker)

        response = client.post('/api/bids', json={
            'jobId': test_job.id,
            'workerId': test_worker.id,
            'amount': 400,
            'coverLetter': 'Lower offer',
        })
        assert response.status_code == 409

    def test_list_bids_for_worker(self, client, job_factory, test_worker, bid_factory):
        bid_factory(job_factory(), test_worker)
        bid_factory(job_factory(), test_worker)

        response = client.get(f'/api/bids?workerId={test_worker.id}')

        assert response.status_code == 200
        assert len(json.loads(response.data)) == 2

    def test_list_bids_requires_worker_id(self, client):
        response = client.get('/api/bids')
        assert response.status_code == 400
        assert 'workerId' in json.loads(response.data)['fields']

    def test_get_bid(self, client, test_job, test_worker, bid_factory):
        bid = bid_factory(test_job, test_worker)
        response = client.get(f'/api/bids/{bid.id}')
        assert response.status_code == 200
        assert json.loads(response.data)['jobId'] == test_job.id

    def test_withdraw_bid(self, client, test_job, test_worker, bid_factory):
        bid = bid_factory(test_job, test_worker)

        response = client.post(f'/api/bids/{bid.id}/withdraw', json={'workerId': test_worker.id})

        assert response.status_code == 200
        assert json.loads(response.data)['status'] == 'withdrawn'

    def test_job_bids_cheapest_first(self, client, test_job, worker_factory, bid_factory):
        for amount in (500, 450):
            bid_factory(test_job, worker_factory(), amount=amount)

        response = client.get(f'/api/jobs/{test_job.id}/bids')

        assert response.status_code == 200
        assert [bid['amount'] for bid in json.loads(response.data)] == [450.0, 500.0]

    def test_select_bid(self, client, test_job, worker_factory, bid_factory):
        """Test selecting a bid assigns the job and rejects the rest"""
        w1, w2 = worker_factory(), worker_factory()
        bid1 = bid_factory(test_job, w1, amount=500)
        bid2 = bid_factory(test_job, w2, amount=450)

        response = client.post(f'/api/jobs/{test_job.id}/select-bid/{bid2.id}')

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['job']['status'] == 'assigned'
        assert data['job']['selectedWorkerId'] == w2.id
        assert data['selectedBid']['id'] == bid2.id
        assert data['selectedBid']['status'] == 'accepted'
        assert json.loads(client.get(f'/api/bids/{bid1.id}').data)['status'] == 'rejected'

    def test_select_bid_twice(self, client, test_job, worker_factory, bid_factory):
        bid1 = bid_factory(test_job, worker_factory(), amount=500)
        bid2 = bid_factory(test_job, worker_factory(), amount=450)
        client.post(f'/api/jobs/{test_job.id}/select-bid/{bid1.id}')

        response = client.post(f'/api/jobs/{test_job.id}/select-bid/{bid2.id}')

        assert response.status_code == 409
        assert json.loads(response.data)['error'] == 'Job already assigned'

    def test_select_bid_from_other_job(self, client, job_factory, test_worker, bid_factory):
        job_a = job_factory()
        bid_on_b = bid_factory(job_factory(), test_worker)

        response = client.post(f'/api/jobs/{job_a.id}/select-bid/{bid_on_b.id}')
        assert response.status_code == 400

    def test_select_missing_bid(self, client, test_job):
        assert client.post(f'/api/jobs/{test_job.id}/select-bid/999').status_code == 404
