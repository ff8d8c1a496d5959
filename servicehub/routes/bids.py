from flask import Blueprint, jsonify, request

from servicehub import bidding
from servicehub.routes import json_body

bids_bp = Blueprint('bids', __name__)


@bids_bp.route('', methods=['POST'])
def submit_bid():
    """
    Place a bid on an open job
    POST /api/bids
    Body: {
        "jobId": 1,
        "workerId": 2,
        "amount": 450,
        "proposedDate": "2026-11-02",
        "proposedTime": "10:00",
        "estimatedDuration": "2 hours",
        "coverLetter": "Licensed plumber, can bring spare parts"
    }

    The worker must be approved and document-verified.
    """
    data = json_body()
    bid = bidding.submit_bid(data.get('jobId'), data.get('workerId'), data)
    return jsonify(bid.to_dict()), 201


@bids_bp.route('', methods=['GET'])
def list_worker_bids():
    """
    A worker's bids, newest first
    GET /api/bids?workerId=2
    """
    bids = bidding.list_bids_for_worker(request.args.get('workerId'))
    return jsonify([bid.to_dict() for bid in bids]), 200


@bids_bp.route('/<int:bid_id>', methods=['GET'])
def get_bid(bid_id):
    return jsonify(bidding.get_bid(bid_id).to_dict()), 200


@bids_bp.route('/<int:bid_id>/withdraw', methods=['POST'])
def withdraw_bid(bid_id):
    """
    Withdraw a pending bid
    POST /api/bids/:id/withdraw
    Body: {"workerId": 2}
    """
    data = json_body()
    bid = bidding.withdraw_bid(bid_id, data.get('workerId'))
    return jsonify(bid.to_dict()), 200
