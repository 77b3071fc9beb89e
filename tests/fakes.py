"""
In-memory stand-in for the supabase-py client.

Implements the slice of the fluent PostgREST builder, RPC and auth admin API
that DataAccessClient uses, with PostgREST-like filter semantics (ilike is a
case-insensitive LIKE, filtering on an unknown column is an error).
"""

import copy
import re
import uuid
from types import SimpleNamespace


class FakeAPIError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code


class FakeResponse:
    def __init__(self, data=None, count=None):
        self.data = data
        self.count = count


def like_to_regex(pattern):
    parts = []
    for ch in pattern:
        if ch == "%" or ch == "*":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def split_top_level(expr):
    parts, current, depth, quoted, escaped = [], [], 0, False, False
    for ch in expr:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if quoted and ch == "\\":
            current.append(ch)
            escaped = True
            continue
        if ch == '"':
            quoted = not quoted
        elif not quoted and ch == "(":
            depth += 1
        elif not quoted and ch == ")":
            depth -= 1
        elif not quoted and depth == 0 and ch == ",":
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def unquote(value):
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return re.sub(r"\\(.)", r"\1", value[1:-1])
    return value


def values_equal(actual, expected):
    if isinstance(expected, str) and not isinstance(actual, str) and actual is not None:
        if isinstance(actual, bool):
            return str(actual).lower() == expected.lower()
        return str(actual) == expected
    return actual == expected


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.payload = None
        self.count_mode = None
        self.head = False
        self.conditions = []  # (operator, column, value) as sent
        self.predicates = []
        self._order = None
        self._limit = None
        self._offset = 0

    # actions

    def select(self, *columns, count=None, head=None):
        self.action = "select"
        self.columns = ",".join(columns) or "*"
        self.count_mode = count
        self.head = bool(head)
        return self

    def insert(self, record):
        self.action = "insert"
        self.payload = record
        return self

    def update(self, patch):
        self.action = "update"
        self.payload = patch
        return self

    def delete(self):
        self.action = "delete"
        return self

    # filters

    def _column_predicate(self, operator, column, value):
        if operator == "eq":
            return lambda row: values_equal(row.get(column), value)
        if operator == "neq":
            return lambda row: row.get(column) is not None and not values_equal(row.get(column), value)
        if operator == "ilike":
            regex = like_to_regex(value)
            return lambda row: row.get(column) is not None and bool(regex.match(str(row.get(column))))
        if operator == "in":
            return lambda row: any(values_equal(row.get(column), v) for v in value)
        if operator == "is":
            return lambda row: row.get(column) is None if value in (None, "null") else values_equal(row.get(column), value)
        raise FakeAPIError(f"unsupported operator {operator}", "PGRST100")

    def _add(self, operator, column, value):
        self.conditions.append((operator, column, value))
        self.predicates.append(self._column_predicate(operator, column, value))
        return self

    def eq(self, column, value):
        return self._add("eq", column, value)

    def neq(self, column, value):
        return self._add("neq", column, value)

    def ilike(self, column, pattern):
        return self._add("ilike", column, pattern)

    def in_(self, column, values):
        return self._add("in", column, list(values))

    def is_(self, column, value):
        return self._add("is", column, value)

    def or_(self, expression):
        self.conditions.append(("or", None, expression))
        alternatives = []
        for part in split_top_level(expression):
            column, operator, raw = part.split(".", 2)
            if operator == "in":
                value = [unquote(v) for v in split_top_level(raw.strip("()"))]
            else:
                value = unquote(raw)
            alternatives.append((column, self._column_predicate(operator, column, value)))
        self.predicates.append(lambda row: any(p(row) for _, p in alternatives))
        self._or_columns = getattr(self, "_or_columns", []) + [c for c, _ in alternatives]
        return self

    # modifiers

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, size):
        self._limit = size
        return self

    def range(self, start, end):
        self._offset = start
        self._limit = end - start + 1
        return self

    # execution

    def filter_columns(self):
        columns = [c for op, c, _ in self.conditions if op != "or"]
        return columns + getattr(self, "_or_columns", [])

    def execute(self):
        self.client.calls.append(self)
        self.client.raise_if_failing(self)
        rows = self.client.tables.setdefault(self.table, [])
        self._check_columns(rows)

        if self.action == "insert":
            records = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for record in records:
                row = dict(record)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        matched = [row for row in rows if all(p(row) for p in self.predicates)]
        if self.action == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse(copy.deepcopy(matched))
        if self.action == "delete":
            for row in matched:
                rows.remove(row)
            return FakeResponse(copy.deepcopy(matched))

        if self._order:
            column, desc = self._order
            present = [r for r in matched if r.get(column) is not None]
            missing = [r for r in matched if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=desc)
            matched = present + missing
        count = len(matched) if self.count_mode else None
        matched = matched[self._offset:]
        if self._limit is not None:
            matched = matched[: self._limit]
        if self.client.max_rows is not None:
            matched = matched[: self.client.max_rows]
        if self.head:
            return FakeResponse([], count)
        return FakeResponse([self._project(r) for r in matched], count)

    def _check_columns(self, rows):
        if not rows:
            return
        known = set().union(*(r.keys() for r in rows))
        for column in self.filter_columns():
            if column not in known:
                raise FakeAPIError(f"column {self.table}.{column} does not exist", "42703")

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self.columns.split(",") if c.strip()]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}


class FakeRpc:
    def __init__(self, client, name, params):
        self.client = client
        self.name = name
        self.params = params

    def execute(self):
        self.client.rpc_calls.append((self.name, self.params))
        handler = self.client.rpc_handlers.get(self.name)
        if handler is None:
            raise FakeAPIError(f"Could not find the function public.{self.name}", "PGRST202")
        return FakeResponse(handler(self.params))


class FakeAdmin:
    def __init__(self):
        self.identities = {}
        self.failing_ids = set()
        self.deleted = []
        self.on_delete = None

    def add_identity(self, user_id, email, app_metadata=None, user_metadata=None):
        self.identities[user_id] = SimpleNamespace(
            id=user_id,
            email=email,
            user_metadata=user_metadata or {},
            app_metadata=app_metadata or {},
            created_at="2024-01-01T00:00:00+00:00",
        )
        return self.identities[user_id]

    def create_user(self, attributes):
        user = self.add_identity(str(uuid.uuid4()), attributes["email"], user_metadata=attributes.get("user_metadata"))
        return SimpleNamespace(user=user)

    def delete_user(self, user_id):
        if user_id in self.failing_ids:
            raise FakeAPIError("Database error deleting user", "unexpected_failure")
        if user_id not in self.identities:
            raise FakeAPIError("User not found", "user_not_found")
        del self.identities[user_id]
        self.deleted.append(user_id)
        if self.on_delete:
            self.on_delete(user_id)

    def list_users(self, page=1, per_page=50):
        users = list(self.identities.values())
        start = (page - 1) * per_page
        return users[start:start + per_page]


class FakeAuth:
    def __init__(self):
        self.admin = FakeAdmin()
        self.tokens = {}

    def get_user(self, jwt=None):
        if jwt not in self.tokens:
            raise FakeAPIError("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self.tokens[jwt])


class FakeSupabase:
    def __init__(self, tables=None, max_rows=None):
        self.max_rows = max_rows  # PostgREST db-max-rows
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.calls = []
        self.rpc_calls = []
        self.rpc_handlers = {}
        self.failures = []
        self.auth = FakeAuth()
        self.auth.admin.on_delete = self._cascade_identity

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})

    def fail_when(self, table, action, when=None, message="permission denied", code="42501"):
        """Make matching requests raise; `when` receives the query"""
        self.failures.append((table, action, when, message, code))

    def raise_if_failing(self, query):
        for table, action, when, message, code in self.failures:
            if table == query.table and action == query.action and (when is None or when(query)):
                raise FakeAPIError(message, code)

    def _cascade_identity(self, user_id):
        # users.id references auth.users on delete cascade
        users = self.tables.get("users", [])
        users[:] = [row for row in users if row.get("id") != user_id]

    def mutations(self, table=None):
        return [
            q for q in self.calls
            if q.action in ("insert", "update", "delete") and (table is None or q.table == table)
        ]

    def rows(self, table):
        return self.tables.get(table, [])


def filtered_on(column, value):
    """`when` helper for fail_when: the query filters column = value"""
    return lambda query: ("eq", column, value) in query.conditions
