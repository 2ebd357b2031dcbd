import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from reference.schema_registry import CollectionSeed, SchemaRegistry
from .models import Diagnostic, Severity


# Operation allow-list, grouped by CRUD / aggregate family
DOCUMENT_OPERATIONS = {
    "create": {"insertOne", "insertMany", "insert"},
    "read": {"find", "findOne", "countDocuments", "estimatedDocumentCount", "count", "distinct"},
    "update": {
        "updateOne", "updateMany", "update", "replaceOne",
        "findOneAndUpdate", "findOneAndReplace", "bulkWrite",
    },
    "delete": {"deleteOne", "deleteMany", "remove", "findOneAndDelete"},
    "aggregate": {"aggregate"},
}

ALLOWED_OPERATIONS = set().union(*DOCUMENT_OPERATIONS.values())

# Operations whose first argument is a filter document
FILTER_OPERATIONS = {
    "find", "findOne", "countDocuments", "count",
    "updateOne", "updateMany", "update", "replaceOne",
    "deleteOne", "deleteMany", "remove",
    "findOneAndUpdate", "findOneAndReplace", "findOneAndDelete",
}

# db.orders.find(  |  db.getCollection("orders").find(  |  db["orders"].find(
CALL_RE = re.compile(
    r"\bdb\s*(?:"
    r"\.\s*getCollection\(\s*(?P<q1>['\"])(?P<quoted>[^'\"]+)(?P=q1)\s*\)"
    r"|\[\s*(?P<q2>['\"])(?P<bracketed>[^'\"]+)(?P=q2)\s*\]"
    r"|\.\s*(?P<name>[A-Za-z_$][\w$]*)"
    r")\s*\.\s*(?P<op>[A-Za-z_$][\w$]*)\s*\("
)

CREATE_RE = re.compile(r"\bdb\s*\.\s*createCollection\(\s*(['\"])(?P<name>[^'\"]+)\1")

KEY_RE = re.compile(r"\s*(?:(?P<q>['\"])(?P<quoted>(?:\\.|(?!(?P=q)).)*)(?P=q)|(?P<bare>[A-Za-z_$][\w$.]*))\s*:")

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {v: k for k, v in OPENERS.items()}

# A "/" after one of these starts a regex literal ({name: /^A/})
REGEX_PRECEDERS = set("(,:[=!&|?{};")


@dataclass
class DocumentCheck:
    """Outcome of checking one document-store snippet."""
    diagnostics: List[Diagnostic] = field(default_factory=list)
    parse_error: Optional[str] = None
    created_collections: List[str] = field(default_factory=list)
    operations: List[Tuple[str, str]] = field(default_factory=list)


class DocumentQueryValidator:
    """
    Checks MongoDB-shell style snippets against the collection seed.

    - collection names must exist in the seed (or be created earlier in
      the same document with db.createCollection)
    - operation names must be in the CRUD / aggregate allow-list
    - top-level filter keys not seen in the seed are flagged as warnings
    """

    def validate(self, text: str, schema: SchemaRegistry) -> DocumentCheck:
        """
        Args:
            text: Snippet text
            schema: Registry holding the collection seed

        Returns:
            DocumentCheck; parse_error is set for unbalanced brackets or
            unterminated strings, in which case no other checks run
        """
        check = DocumentCheck()
        cleaned, error = self._strip_comments(text)
        if error:
            check.parse_error = error
            return check

        for match in CREATE_RE.finditer(cleaned):
            name = match.group("name")
            if name not in check.created_collections:
                check.created_collections.append(name)
        schema = self.extend_scope(schema, check.created_collections)

        seen = set()
        for match in CALL_RE.finditer(cleaned):
            collection = match.group("quoted") or match.group("bracketed") or match.group("name")
            operation = match.group("op")
            check.operations.append((collection, operation))

            seed = schema.lookup_collection(collection)
            if seed is None and collection not in seen:
                check.diagnostics.append(Diagnostic(
                    severity=Severity.ERROR,
                    code="unknown-collection",
                    message=f"Collection '{collection}' does not exist in the reference seed.",
                    identifier=collection,
                ))
            seen.add(collection)

            if operation not in ALLOWED_OPERATIONS:
                check.diagnostics.append(Diagnostic(
                    severity=Severity.ERROR,
                    code="unknown-operation",
                    message=f"Operation '{operation}' on '{collection}' is not a known "
                            f"create/read/update/delete/aggregate operation.",
                    identifier=operation,
                ))
                continue

            if seed is not None and seed.fields and operation in FILTER_OPERATIONS:
                for key in self._filter_keys(cleaned, match.end()):
                    if key.startswith("$") or seed.has_field(key):
                        continue
                    check.diagnostics.append(Diagnostic(
                        severity=Severity.WARNING,
                        code="unknown-field",
                        message=f"Field '{key}' is not present in any '{collection}' seed document.",
                        identifier=key,
                    ))

        if not check.operations and not check.created_collections:
            check.diagnostics.append(Diagnostic(
                severity=Severity.INFO,
                code="no-operations",
                message="No collection operations found in block.",
            ))
        return check

    def extend_scope(self, schema: SchemaRegistry, names: List[str]) -> SchemaRegistry:
        """Registry that also knows collections created with db.createCollection."""
        # Fields of a freshly created collection are unknown
        fresh = [CollectionSeed(name=n) for n in names if schema.lookup_collection(n) is None]
        return schema.with_collections(fresh) if fresh else schema

    def _strip_comments(self, text: str) -> Tuple[str, Optional[str]]:
        """
        Blank out comments and check bracket / string balance.

        Returns:
            (text with comments replaced by spaces, error message or None)
        """
        out = []
        stack: List[Tuple[str, int]] = []
        line = 1
        i = 0
        last_significant = ""

        while i < len(text):
            ch = text[i]
            nxt = text[i + 1] if i + 1 < len(text) else ""

            if ch == "\n":
                line += 1
                out.append(ch)
                i += 1
                continue

            if ch == "/" and nxt == "/":
                end = text.find("\n", i)
                end = len(text) if end == -1 else end
                out.append(" " * (end - i))
                i = end
                continue

            if ch == "/" and nxt == "*":
                end = text.find("*/", i + 2)
                if end == -1:
                    return "", f"Unterminated comment starting on line {line} of the block"
                chunk = text[i:end + 2]
                out.append("".join(c if c == "\n" else " " for c in chunk))
                line += chunk.count("\n")
                i = end + 2
                continue

            if ch in "'\"`" or (ch == "/" and last_significant in REGEX_PRECEDERS | {""}):
                end = self._literal_end(text, i, ch)
                if end is None:
                    kind = "regular expression" if ch == "/" else "string"
                    return "", f"Unterminated {kind} on line {line} of the block"
                chunk = text[i:end + 1]
                out.append(chunk)
                line += chunk.count("\n")
                last_significant = ch
                i = end + 1
                continue

            if ch in OPENERS:
                stack.append((ch, line))
            elif ch in CLOSERS:
                if not stack or stack[-1][0] != CLOSERS[ch]:
                    return "", f"Unexpected '{ch}' on line {line} of the block"
                stack.pop()

            if not ch.isspace():
                last_significant = ch
            out.append(ch)
            i += 1

        if stack:
            opener, opened_on = stack[-1]
            return "", f"Unbalanced '{opener}' opened on line {opened_on} of the block"
        return "".join(out), None

    @staticmethod
    def _literal_end(text: str, start: int, quote: str) -> Optional[int]:
        """Index of the closing quote of a string or regex literal."""
        i = start + 1
        while i < len(text):
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                return i
            if ch == "\n" and quote != "`":
                return None
            i += 1
        return None

    def _filter_keys(self, text: str, args_start: int) -> List[str]:
        """Top-level keys of a literal filter document passed as first argument."""
        i = args_start
        while i < len(text) and text[i].isspace():
            i += 1
        if i >= len(text) or text[i] != "{":
            return []

        keys = []
        depth = 0
        expect_key = False
        while i < len(text):
            ch = text[i]
            if ch in "'\"`":
                if depth == 1 and expect_key:
                    match = KEY_RE.match(text, i)
                    if match:
                        keys.append(match.group("quoted"))
                        i = match.end()
                        expect_key = False
                        continue
                i = (self._literal_end(text, i, ch) or i) + 1
                continue
            if ch in OPENERS:
                depth += 1
                expect_key = depth == 1
            elif ch in CLOSERS:
                depth -= 1
                if depth == 0:
                    break
            elif depth == 1 and ch == ",":
                expect_key = True
            elif depth == 1 and expect_key and not ch.isspace():
                match = KEY_RE.match(text, i)
                if match:
                    keys.append(match.group("quoted") if match.group("q") else match.group("bare"))
                    i = match.end()
                expect_key = False
                continue
            i += 1
        return keys
