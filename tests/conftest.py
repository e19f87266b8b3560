"""
Shared test fixtures for notion-cli tests.
Patches the config module to avoid loading a real .env, and provides an
in-memory stand-in for the internal API so client tests never touch the
network.
"""

import copy

import pytest

from notion_cli.exceptions import CliError


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Ensure every test starts with a clean config state.
    Prevents tests from reading the real .env or real credentials."""
    from notion_cli import config

    monkeypatch.setattr(config, "env", {})
    monkeypatch.setattr(config, "TOKEN_V2", "fake-token-v2")
    monkeypatch.setattr(config, "USER_ID", "fake-user-id")
    monkeypatch.setattr(config, "BASE_URL", "https://notion.test/api/v3")
    monkeypatch.setattr(config, "CREDENTIALS_PATH", "/nonexistent/credentials.json")
    monkeypatch.setattr(config, "HTTP_LOG_ENABLED", False)
    monkeypatch.setattr(config, "HTTP_MAX_RETRIES", 0)
    monkeypatch.setattr(config, "RUNTIME_QUIET", False)
    monkeypatch.setattr(config, "RUNTIME_VERBOSE", False)


class FakeNotion:
    """Record store that answers the internal API endpoints the client uses.

    ``saveTransactions`` applies operations to the store, so a test can
    create records through the client and read them back through it.
    """

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.spaces = {}
        self.responses = {}
        self.fail_saves = set()
        self.save_count = 0

    # -- store helpers --------------------------------------------------

    def add(self, table, value):
        self.tables.setdefault(table, {})[value["id"]] = copy.deepcopy(value)
        return value["id"]

    def get(self, table, record_id):
        return self.tables.get(table, {}).get(record_id)

    def saved_operations(self):
        """Every operation sent through saveTransactions, in order."""
        ops = []
        for endpoint, body in self.calls:
            if endpoint == "saveTransactions":
                for tx in body["transactions"]:
                    ops.extend(tx["operations"])
        return ops

    def endpoints(self):
        return [endpoint for endpoint, _ in self.calls]

    @staticmethod
    def wrap(value):
        return {
            "spaceId": value.get("space_id"),
            "value": {"value": copy.deepcopy(value), "role": "editor"},
        }

    def record_map(self, pointers):
        out = {}
        for table, record_id in pointers:
            value = self.get(table, record_id)
            if value is not None:
                out.setdefault(table, {})[record_id] = self.wrap(value)
        return out

    # -- transport ------------------------------------------------------

    def invoke(self, session, endpoint, body=None):
        body = body or {}
        self.calls.append((endpoint, copy.deepcopy(body)))
        if endpoint in self.responses:
            response = self.responses[endpoint]
            return response(body) if callable(response) else copy.deepcopy(response)
        handler = getattr(self, f"_{endpoint}", None)
        if handler is None:
            raise CliError(f"[ERROR] Notion internal API error: 404 on {endpoint}")
        return handler(body)

    def _syncRecordValues(self, body):
        pointers = [(r["pointer"]["table"], r["pointer"]["id"]) for r in body["requests"]]
        return {"recordMap": self.record_map(pointers)}

    def _saveTransactions(self, body):
        self.save_count += 1
        if self.save_count in self.fail_saves:
            raise CliError("[ERROR] Notion internal API error: 500 on saveTransactions")
        for tx in body["transactions"]:
            for op in tx["operations"]:
                self.apply(op)
        return {}

    def apply(self, op):
        table = op["pointer"]["table"]
        record_id = op["pointer"]["id"]
        records = self.tables.setdefault(table, {})
        record = records.setdefault(record_id, {"id": record_id})
        path = op["path"]
        command = op["command"]
        args = copy.deepcopy(op["args"])
        if not path:
            if command == "set":
                records[record_id] = args
            else:
                record.update(args)
            return
        parent = record
        for part in path[:-1]:
            parent = parent.setdefault(part, {})
        last = path[-1]
        if command == "set":
            parent[last] = args
        elif command == "update":
            parent.setdefault(last, {}).update(args)
        elif command == "listAfter":
            parent.setdefault(last, []).append(args["id"])
        elif command == "listRemove":
            items = parent.get(last) or []
            if args["id"] in items:
                items.remove(args["id"])

    def _queryCollection(self, body):
        collection_id = body["collectionId"]
        view = self.get("collection_view", body["collectionViewId"]) or {}
        rows = [
            b
            for b in self.tables.get("block", {}).values()
            if b.get("parent_table") == "collection"
            and b.get("parent_id") == collection_id
            and b.get("alive") is not False
        ]
        order = view.get("page_sort") or []
        rows.sort(key=lambda b: order.index(b["id"]) if b["id"] in order else len(order))
        limit = body["loader"]["reducers"]["collection_group_results"]["limit"]
        ids = [b["id"] for b in rows]
        pointers = [("block", rid) for rid in ids[:limit]] + [("collection", collection_id)]
        return {
            "result": {
                "reducerResults": {
                    "collection_group_results": {
                        "type": "results",
                        "blockIds": ids[:limit],
                        "hasMore": len(ids) > limit,
                    }
                }
            },
            "recordMap": self.record_map(pointers),
        }

    def _descendants(self, block_id, out):
        block = self.get("block", block_id)
        if block is None or block_id in out:
            return
        out.append(block_id)
        for child_id in block.get("content") or []:
            self._descendants(child_id, out)

    def _loadPageChunk(self, body):
        ids = []
        self._descendants(body["pageId"], ids)
        pointers = [("block", bid) for bid in ids]
        for discussion in self.tables.get("discussion", {}).values():
            if discussion.get("parent_id") in ids:
                pointers.append(("discussion", discussion["id"]))
                pointers.extend(("comment", cid) for cid in discussion.get("comments") or [])
        return {"recordMap": self.record_map(pointers), "cursor": {"stack": []}}

    def _getSpaces(self, body):
        return copy.deepcopy(self.spaces)


@pytest.fixture
def fake_notion():
    return FakeNotion()


@pytest.fixture
def client(fake_notion):
    from notion_cli.client import NotionClient
    from notion_cli.session import Session

    return NotionClient(
        session=Session(token_v2="fake-token-v2", user_id="user-1"),
        invoke=fake_notion.invoke,
    )
