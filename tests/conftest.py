from types import SimpleNamespace
from typing import Generator

import boto3
import pytest
from botocore.stub import Stubber
from fastapi.testclient import TestClient

import dependencies
from main import app
from services.comments import CommentService
from services.feed import FeedAggregator
from services.firestore import FirestoreDB
from services.likes import LikeService
from services.posts import PostService
from services.s3 import S3Service
from tests.fakes import FakeFirestore

BUCKET = "post-images-test"
REGION = "us-east-2"

TOKENS = {
    "token-alice": {"uid": "user-a", "email": "alice@example.com"},
    "token-bob": {"uid": "user-b", "email": "bob@example.com"},
    "token-carol": {"uid": "user-c"},
}


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


ALICE = auth("token-alice")
BOB = auth("token-bob")
CAROL = auth("token-carol")


def fake_verify_id_token(token, check_revoked=False, clock_skew_seconds=0):
    if token not in TOKENS:
        raise ValueError("Could not verify token")
    return TOKENS[token]


@pytest.fixture()
def store() -> FakeFirestore:
    fake = FakeFirestore()
    fake.write("profiles", "user-a", {"username": "alice", "avatar_url": "https://cdn.example.com/a.png"})
    fake.write("profiles", "user-b", {"username": "bob", "avatar_url": None})
    return fake


@pytest.fixture()
def db(store) -> FirestoreDB:
    return FirestoreDB(store, timeout=2)


@pytest.fixture()
def s3_stub() -> Generator[SimpleNamespace, None, None]:
    client = boto3.client(
        "s3",
        region_name=REGION,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield SimpleNamespace(client=client, stubber=stubber)


@pytest.fixture()
def s3(s3_stub) -> S3Service:
    return S3Service(BUCKET, s3_stub.client, REGION, timeout=2)


@pytest.fixture()
def client(db, s3, monkeypatch) -> Generator[TestClient, None, None]:
    monkeypatch.setattr(dependencies, "verify_id_token", fake_verify_id_token)

    app.state.firestore = db
    app.state.s3_service = s3
    app.state.feed = FeedAggregator(db)
    app.state.post_service = PostService(db, s3)
    app.state.like_service = LikeService(db)
    app.state.comment_service = CommentService(db)

    # no context manager: the lifespan would connect to Firebase and S3
    yield TestClient(app)
