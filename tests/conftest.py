import copy
import json
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from config import Config
from models.profile import Profile, Skill, WorkExperience
from utils.bedrock_client import BedrockError
from utils.document_store import DocumentNotFoundError


def _is_empty(value):
    return value is None or value == [] or value == ""


class InMemoryDocumentStore:
    """Dict-backed stand-in for DocumentStore with the same update and CAS semantics"""

    def __init__(self):
        self.collections = {}
        self.writes = []
        self._tick = 0

    def _now(self):
        self._tick += 1
        return datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=self._tick)

    def _record(self, op, collection, doc_id, data):
        self.writes.append((op, collection, doc_id, copy.deepcopy(data)))

    @staticmethod
    def _clean(data):
        return {k: copy.deepcopy(v) for k, v in data.items() if k not in ("id", "created_at", "updated_at")}

    def _rows(self, collection):
        return self.collections.setdefault(collection, {})

    def get(self, collection, doc_id):
        row = self._rows(collection).get(doc_id)
        if row is None:
            return None
        document = copy.deepcopy(row["data"])
        document.update(id=doc_id, created_at=row["created_at"], updated_at=row["updated_at"])
        return document

    def set(self, collection, doc_id, data, merge=False):
        self._record("set", collection, doc_id, data)
        rows = self._rows(collection)
        now = self._now()
        if doc_id in rows:
            row = rows[doc_id]
            row["data"] = {**row["data"], **self._clean(data)} if merge else self._clean(data)
            row["updated_at"] = now
        else:
            rows[doc_id] = {"data": self._clean(data), "created_at": now, "updated_at": now}

    def update(self, collection, doc_id, patch):
        row = self._rows(collection).get(doc_id)
        if row is None:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
        self._record("update", collection, doc_id, patch)
        row["data"].update(self._clean(patch))
        row["updated_at"] = self._now()

    def update_if(self, collection, doc_id, patch, expected):
        row = self._rows(collection).get(doc_id)
        if row is None:
            return False
        for field, value in expected.items():
            current = row["data"].get(field)
            if value is None and not _is_empty(current):
                return False
            if value is not None and current != value:
                return False
        self._record("update_if", collection, doc_id, patch)
        row["data"].update(self._clean(patch))
        row["updated_at"] = self._now()
        return True

    def add(self, collection, data):
        doc_id = uuid.uuid4().hex
        self.set(collection, doc_id, data)
        return doc_id

    def delete(self, collection, doc_id):
        self._record("delete", collection, doc_id, {})
        self._rows(collection).pop(doc_id, None)

    def query(self, collection, filters=None, order_by="updated_at", descending=True):
        documents = [self.get(collection, doc_id) for doc_id in self._rows(collection)]
        documents = [
            document for document in documents
            if all(document.get(key) == value for key, value in (filters or {}).items())
        ]
        return sorted(documents, key=lambda document: document.get(order_by) or "", reverse=descending)


class FakeBedrockClient:
    """Scripted gateway: each call pops the next response; exceptions are raised"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, kind, prompt, system):
        self.calls.append(SimpleNamespace(kind=kind, prompt=prompt, system=system))
        if not self.responses:
            raise BedrockError("No scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response if isinstance(response, str) else json.dumps(response)

    def invoke_model(self, prompt, system=None, max_tokens=None, temperature=0.7):
        return self._next("text", prompt, system)

    def invoke_model_json(self, prompt, system=None, max_tokens=None, temperature=0.2):
        return self._next("json", prompt, system)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def config(monkeypatch):
    for key, value in {
        "AWS_REGION": "us-east-1",
        "AWS_ACCESS_KEY_ID": "test-key",
        "AWS_SECRET_ACCESS_KEY": "test-secret",
        "S3_BUCKET_NAME": "interview-prep-test",
        "DATABASE_URL": "postgresql://localhost/interview_prep_test",
        "QUESTIONS_PER_SESSION": "5",
        "DEFAULT_ANSWER_TAG": "interview",
        "GENERATION_CLAIM_TTL_SECONDS": "120",
    }.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("SUPABASE_DATABASE_URL", raising=False)
    return Config()


@pytest.fixture
def empty_profile():
    return Profile(uid="user-1")


@pytest.fixture
def filled_profile():
    return Profile(
        uid="user-1",
        name="Ada Lovelace",
        email="ada@example.com",
        summary="Engineer who likes clean APIs.",
        work_experience=[WorkExperience(company="Tech Corp", position="Engineer", description=["Built APIs"])],
        skills=[Skill(name="Python", level="Expert")],
    )


@pytest.fixture
def make_bedrock():
    """Factory for scripted gateways"""
    return FakeBedrockClient
