"""Tests for QueueWorker."""

import asyncio
import json
import random
from datetime import date
from unittest.mock import AsyncMock

import boto3
import pytest
from botocore.stub import Stubber

from concierge.errors import NotificationError, SearchError
from concierge.models import (
    CandidateRecord,
    DiningRequest,
    RestaurantDetail,
    WorkerStatus,
)
from concierge.queue import SqsWorkQueue
from concierge.storage import DynamoRecordStore
from concierge.worker import QueueWorker, select_candidates


def make_request(**overrides) -> DiningRequest:
    values = dict(
        location="manhattan",
        cuisine="thai",
        party_size=4,
        dining_date=date(2030, 5, 16),
        dining_time="19:30",
        email="diner@example.com",
    )
    values.update(overrides)
    return DiningRequest(**values)


async def seed_restaurants(storage, count: int, cuisine: str = "thai") -> list[str]:
    ids = [f"biz-{i}" for i in range(count)]
    for i, business_id in enumerate(ids):
        await storage.save_restaurant(
            RestaurantDetail(
                business_id=business_id,
                name=f"Restaurant {i}",
                address=f"{i} Main St",
                rating="4.5",
                review_count=str(100 + i),
                zip_code="10001",
            ),
            cuisine,
        )
    return ids


def hits(ids):
    return [CandidateRecord(restaurant_id=i, cuisine="thai") for i in ids]


class TestSelectCandidates:
    """Tests for random selection."""

    def test_fewer_than_k_returns_all(self):
        selected = select_candidates(["a", "b"], 3, random.Random(1))
        assert sorted(selected) == ["a", "b"]

    def test_returns_k_distinct(self):
        ids = [f"id-{i}" for i in range(10)]
        for seed in range(20):
            selected = select_candidates(ids, 3, random.Random(seed))
            assert len(selected) == 3
            assert len(set(selected)) == 3
            assert set(selected) <= set(ids)

    def test_duplicate_hits_collapse(self):
        selected = select_candidates(["a", "a", "a", "b"], 3, random.Random(1))
        assert sorted(selected) == ["a", "b"]

    def test_empty(self):
        assert select_candidates([], 3, random.Random(1)) == []

    def test_every_candidate_can_be_chosen(self):
        ids = [f"id-{i}" for i in range(5)]
        rng = random.Random(42)
        seen = set()
        for _ in range(200):
            seen.update(select_candidates(ids, 3, rng))
        assert seen == set(ids)


class TestRunOnce:
    """Tests for one worker invocation."""

    @pytest.mark.asyncio
    async def test_empty_queue(self, worker, mock_search, mock_notifier):
        result = await worker.run_once()

        assert result.status is WorkerStatus.EMPTY
        mock_search.search.assert_not_called()
        mock_notifier.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_processes_request(
        self, worker, work_queue, storage, mock_search, mock_notifier, monkeypatch
    ):
        ids = await seed_restaurants(storage, 5)
        mock_search.search.return_value = hits(ids)
        message_id = await work_queue.enqueue(make_request().to_payload())
        acknowledge = AsyncMock(wraps=work_queue.acknowledge)
        monkeypatch.setattr(work_queue, "acknowledge", acknowledge)

        result = await worker.run_once()

        assert result.status is WorkerStatus.PROCESSED
        assert result.message_id == message_id
        assert result.notified is True
        assert len(result.selected_ids) == 3
        assert len(set(result.selected_ids)) == 3
        assert set(result.selected_ids) <= set(ids)
        mock_search.search.assert_awaited_once_with("thai", limit=50)
        assert await work_queue.count() == 0
        assert acknowledge.await_count == 1

        notification = mock_notifier.send.await_args.args[0]
        assert notification.recipient == "diner@example.com"
        assert notification.subject == "Your thai Restaurant Suggestions"
        for business_id in result.selected_ids:
            index = business_id.split("-")[1]
            assert f"Restaurant {index}, located at {index} Main St" in notification.text_body

    @pytest.mark.asyncio
    async def test_suggestions_follow_selection_order(
        self, worker, work_queue, storage, mock_search, mock_notifier
    ):
        ids = await seed_restaurants(storage, 8)
        mock_search.search.return_value = hits(ids)
        await work_queue.enqueue(make_request().to_payload())

        result = await worker.run_once()

        body = mock_notifier.send.await_args.args[0].text_body
        positions = [body.index(f"Restaurant {i.split('-')[1]},") for i in result.selected_ids]
        assert positions == sorted(positions)

    @pytest.mark.asyncio
    async def test_fewer_hits_than_suggestions(
        self, worker, work_queue, storage, mock_search, mock_notifier
    ):
        ids = await seed_restaurants(storage, 2)
        mock_search.search.return_value = hits(ids)
        await work_queue.enqueue(make_request().to_payload())

        result = await worker.run_once()

        assert sorted(result.selected_ids) == ids
        assert "\n3. " not in mock_notifier.send.await_args.args[0].text_body

    @pytest.mark.asyncio
    async def test_no_candidates_is_acknowledged(
        self, worker, work_queue, mock_notifier
    ):
        await work_queue.enqueue(make_request(cuisine="ethiopian").to_payload())

        result = await worker.run_once()

        assert result.status is WorkerStatus.NO_CANDIDATES
        assert "ethiopian" in result.detail
        mock_notifier.send.assert_not_called()
        assert await work_queue.count() == 0

    @pytest.mark.asyncio
    async def test_notification_failure_still_acknowledged(
        self, worker, work_queue, storage, mock_search, mock_notifier
    ):
        ids = await seed_restaurants(storage, 4)
        mock_search.search.return_value = hits(ids)
        mock_notifier.send.side_effect = NotificationError("sender not verified")
        await work_queue.enqueue(make_request().to_payload())

        result = await worker.run_once()

        assert result.status is WorkerStatus.PROCESSED
        assert result.notified is False
        assert await work_queue.count() == 0

    @pytest.mark.asyncio
    async def test_missing_record_gets_placeholder(
        self, worker, work_queue, mock_search, mock_notifier
    ):
        mock_search.search.return_value = hits(["ghost-1"])
        await work_queue.enqueue(make_request().to_payload())

        result = await worker.run_once()

        assert result.selected_ids == ["ghost-1"]
        body = mock_notifier.send.await_args.args[0].text_body
        assert "Unknown Restaurant, located at Address not available" in body
        assert "(Rating: N/A/5, N/A reviews)" in body

    @pytest.mark.asyncio
    async def test_record_lookup_error_gets_placeholder(
        self, worker, work_queue, storage, mock_search, mock_notifier
    ):
        mock_search.search.return_value = hits(["biz-0"])
        await seed_restaurants(storage, 1)
        storage.get_restaurant = AsyncMock(side_effect=RuntimeError("db locked"))
        await work_queue.enqueue(make_request().to_payload())

        result = await worker.run_once()

        assert result.status is WorkerStatus.PROCESSED
        assert "Unknown Restaurant" in mock_notifier.send.await_args.args[0].text_body

    @pytest.mark.asyncio
    async def test_malformed_payload_is_dropped(self, worker, work_queue, mock_search):
        await work_queue.enqueue({"Cuisine": "thai"})

        result = await worker.run_once()

        assert result.status is WorkerStatus.FAILED
        assert result.detail.startswith("malformed payload")
        mock_search.search.assert_not_called()
        assert await work_queue.count() == 0

    @pytest.mark.asyncio
    async def test_search_failure_leaves_item_for_redelivery(
        self, worker, work_queue, queue_clock, mock_search, mock_notifier
    ):
        mock_search.search.side_effect = SearchError("index unavailable")
        message_id = await work_queue.enqueue(make_request().to_payload())

        result = await worker.run_once()

        assert result.status is WorkerStatus.FAILED
        assert "index unavailable" in result.detail
        mock_notifier.send.assert_not_called()
        assert await work_queue.count() == 1

        # Hidden until the visibility timeout passes
        assert (await worker.run_once()).status is WorkerStatus.EMPTY
        queue_clock.advance(31)
        redelivered = await work_queue.receive()
        assert redelivered.message_id == message_id
        assert redelivered.receive_count == 2

    @pytest.mark.asyncio
    async def test_one_item_per_invocation(
        self, worker, work_queue, storage, mock_search
    ):
        ids = await seed_restaurants(storage, 3)
        mock_search.search.return_value = hits(ids)
        await work_queue.enqueue(make_request().to_payload())
        await work_queue.enqueue(make_request(email="other@example.com").to_payload())

        await worker.run_once()

        assert await work_queue.count() == 1

    @pytest.mark.asyncio
    async def test_concurrent_invocations_take_different_items(
        self, worker, work_queue, storage, mock_search, mock_notifier
    ):
        ids = await seed_restaurants(storage, 5)
        mock_search.search.return_value = hits(ids)
        await work_queue.enqueue(make_request().to_payload())
        await work_queue.enqueue(make_request(email="other@example.com").to_payload())

        first, second = await asyncio.gather(worker.run_once(), worker.run_once())

        assert first.status is second.status is WorkerStatus.PROCESSED
        assert first.message_id != second.message_id
        recipients = {call.args[0].recipient for call in mock_notifier.send.await_args_list}
        assert recipients == {"diner@example.com", "other@example.com"}
        assert await work_queue.count() == 0

    @pytest.mark.asyncio
    async def test_result_is_tracked(self, worker, work_queue, storage):
        await work_queue.enqueue(make_request().to_payload())

        await worker.run_once()

        events = await storage.get_trace_events(event_types=["work_item_processed"])
        assert len(events) == 1
        assert events[0].data["status"] == "no_candidates"

    @pytest.mark.asyncio
    async def test_empty_run_not_tracked(self, worker, storage):
        await worker.run_once()

        assert await storage.get_trace_events() == []


QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/DiningRequestsQueue"


def aws_client(service: str):
    return boto3.client(
        service,
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


class TestAwsBackends:
    """Tests for the worker over SQS and DynamoDB."""

    @pytest.fixture
    def sqs(self):
        return aws_client("sqs")

    @pytest.fixture
    def dynamodb(self):
        return aws_client("dynamodb")

    @pytest.fixture
    def aws_worker(self, sqs, dynamodb, mock_search, mock_notifier):
        return QueueWorker(
            work_queue=SqsWorkQueue(queue_url=QUEUE_URL, client=sqs),
            search_index=mock_search,
            record_store=DynamoRecordStore(client=dynamodb),
            notifier=mock_notifier,
            rng=random.Random(7),
        )

    @pytest.mark.asyncio
    async def test_receive_lookup_delete(
        self, aws_worker, sqs, dynamodb, mock_search, mock_notifier
    ):
        mock_search.search.return_value = hits(["abc"])

        with Stubber(sqs) as sqs_stub, Stubber(dynamodb) as dynamodb_stub:
            sqs_stub.add_response(
                "receive_message",
                {
                    "Messages": [
                        {
                            "MessageId": "msg-1",
                            "ReceiptHandle": "handle-1",
                            "Body": json.dumps(make_request().to_payload()),
                            "Attributes": {"ApproximateReceiveCount": "1"},
                        }
                    ]
                },
            )
            dynamodb_stub.add_response(
                "get_item",
                {
                    "Item": {
                        "BusinessID": {"S": "abc"},
                        "Name": {"S": "Lucky Thai"},
                        "Address": {"S": "1 Main St"},
                    }
                },
                {"TableName": "yelp-restaurants", "Key": {"BusinessID": {"S": "abc"}}},
            )
            sqs_stub.add_response(
                "delete_message",
                {},
                {"QueueUrl": QUEUE_URL, "ReceiptHandle": "handle-1"},
            )

            result = await aws_worker.run_once()

            sqs_stub.assert_no_pending_responses()
            dynamodb_stub.assert_no_pending_responses()

        assert result.status is WorkerStatus.PROCESSED
        assert result.message_id == "msg-1"
        assert result.selected_ids == ["abc"]
        body = mock_notifier.send.await_args.args[0].text_body
        assert "Lucky Thai, located at 1 Main St" in body

    @pytest.mark.asyncio
    async def test_unreachable_queue_is_reported(self, aws_worker, sqs, mock_search):
        with Stubber(sqs) as sqs_stub:
            sqs_stub.add_client_error(
                "receive_message",
                service_error_code="ServiceUnavailable",
                http_status_code=503,
            )

            result = await aws_worker.run_once()

        assert result.status is WorkerStatus.FAILED
        assert "SQS receive failed" in result.detail
        mock_search.search.assert_not_called()
