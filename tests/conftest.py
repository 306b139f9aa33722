import copy

import pytest

from topic_index.config import DEFAULT_FIELD_WEIGHTS
from topic_index.engine import TopicIndex
from topic_index.tokenizer import Tokenizer


MUTEX = {
    "id": "mutex-vs-semaphore",
    "title": "Mutex vs Semaphore",
    "tags": ["concurrency"],
}

HASH_INDEX = {
    "id": "hash-index",
    "title": "Hash Index",
    "tags": ["storage"],
}

DNS = {
    "id": "dns-working",
    "title": "DNS and Its Working",
    "subtitle": "Domain Name System - Internet's Phone Book",
    "summary": "DNS translates human-readable domain names into IP addresses.",
    "analogy": "Like a phone book that translates names to phone numbers.",
    "explanation": "\nDNS is a hierarchical distributed database.\n\nCaching improves performance.",
    "keyPoints": [
        "DNS translates domain names to IP addresses",
        "Uses UDP port 53 for queries",
    ],
    "category": " CN ",
    "codeExamples": [
        {
            "title": "Resolve a hostname",
            "description": "Uses the socket module",
            "language": "Python",
            "code": "import socket\nprint(socket.gethostbyname('example.com'))",
        },
        {
            "title": "Lookup with dig",
            "language": "bash",
            "code": "dig example.com",
        },
    ],
    "resources": [
        {
            "type": "Video",
            "title": "How DNS Works",
            "url": "https://www.youtube.com/results?search_query=how+dns+works",
            "description": "Video explanations of DNS resolution",
        },
        {
            "type": "article",
            "title": "DNS Explained",
            "url": "https://www.cloudflare.com/learning/dns/what-is-dns/",
        },
    ],
    "questions": [
        {
            "question": "Explain the DNS resolution process.",
            "answer": "Browser cache, OS cache, resolver, root, TLD, authoritative server.",
        }
    ],
}

DEADLOCK = {
    "id": "deadlock-conditions",
    "title": "Deadlock Conditions",
    "summary": "Mutual exclusion, hold and wait, no preemption and circular wait.",
    "category": "os",
    "tags": ["concurrency"],
    "codeExamples": [
        {"title": "Lock ordering", "language": "go", "code": "mu1.Lock(); mu2.Lock()"},
    ],
    "questions": [
        {
            "question": "How does a mutex relate to deadlock?",
            "answer": "Two threads each holding a mutex the other needs deadlock.",
        }
    ],
    "behavioralQuestions": [
        {
            "question": "Describe debugging a production deadlock.",
            "answer": "Thread dumps showed a lock ordering inversion.",
        }
    ],
}


@pytest.fixture
def tokenizer():
    return Tokenizer()


@pytest.fixture
def records():
    return [copy.deepcopy(r) for r in (MUTEX, HASH_INDEX, DNS, DEADLOCK)]


@pytest.fixture
def index():
    idx = TopicIndex(
        tokenizer=Tokenizer(),
        field_weights=DEFAULT_FIELD_WEIGHTS,
        query_workers=4,
    )
    yield idx
    idx.close()


@pytest.fixture
def loaded_index(index, records):
    index.rebuild(records)
    return index
