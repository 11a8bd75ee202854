"""Constrained interpreter for model-suggested automation statements.

Candidates are never evaluated as code. Each one is parsed with ``ast`` and
accepted only when it is a single call ``<actor>.<operation>(literal, ...)``
whose operation is registered with a matching arity; the call is then
dispatched to the helper's own method.
"""

import ast
import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple

logger = logging.getLogger("healing.interpreter")


class SnippetRejected(ValueError):
    """Raised when a candidate is not an allowed automation call."""
    pass


# operation name -> (min positional args, max positional args)
OPERATION_SIGNATURES: Dict[str, Tuple[int, int]] = {
    "click": (1, 2),
    "doubleClick": (1, 2),
    "fillField": (2, 2),
    "appendField": (2, 2),
    "selectOption": (2, 2),
    "attachFile": (2, 2),
    "checkOption": (1, 2),
    "uncheckOption": (1, 2),
}

ALLOWED_ACTORS = frozenset({"TM", "I"})

# JavaScript literals that arrive as bare names
JS_CONSTANTS = {"true": True, "false": False, "null": None, "undefined": None}


@dataclass(frozen=True)
class ParsedCall:
    """A validated automation call."""
    actor: str
    name: str
    args: Tuple[Any, ...]


class SnippetInterpreter:
    """Parses, validates and runs candidate statements against a helper."""

    def __init__(self, signatures: Dict[str, Tuple[int, int]] = None, actors=ALLOWED_ACTORS):
        self.signatures = dict(signatures or OPERATION_SIGNATURES)
        self.actors = frozenset(actors)

    @property
    def operations(self) -> Tuple[str, ...]:
        return tuple(self.signatures)

    def parse(self, snippet: str) -> ParsedCall:
        """Parse a statement such as ``TM.click('#go')``.

        Raises:
            SnippetRejected: If the statement is not a registered call with literal arguments
        """
        source = (snippet or "").strip()
        if source.startswith("await "):
            source = source[len("await "):].strip()
        source = source.rstrip(";").strip()
        if not source:
            raise SnippetRejected("Empty snippet")

        try:
            tree = ast.parse(source, mode="eval")
        except SyntaxError as e:
            raise SnippetRejected(f"Not a single expression: {e.msg}") from e

        call = tree.body
        if not isinstance(call, ast.Call):
            raise SnippetRejected("Snippet is not a call")
        if call.keywords:
            raise SnippetRejected("Keyword arguments are not allowed")

        func = call.func
        if not (isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name)):
            raise SnippetRejected("Call must have the form <actor>.<operation>(...)")
        if func.value.id not in self.actors:
            raise SnippetRejected(f"Unknown actor '{func.value.id}'")

        name = func.attr
        if name not in self.signatures:
            raise SnippetRejected(f"Operation '{name}' is not allowed")

        low, high = self.signatures[name]
        if not low <= len(call.args) <= high:
            raise SnippetRejected(
                f"'{name}' takes {low}-{high} arguments, got {len(call.args)}")

        args = tuple(self._literal(arg) for arg in call.args)
        return ParsedCall(actor=func.value.id, name=name, args=args)

    async def execute(self, snippet: str, helper) -> ParsedCall:
        """Validate ``snippet`` and run it on ``helper``."""
        parsed = self.parse(snippet)
        logger.debug(f"Executing {parsed.name}{parsed.args}")
        await helper.perform(parsed.name, *parsed.args)
        return parsed

    def _literal(self, node: ast.AST) -> Any:
        if isinstance(node, ast.Constant) and not isinstance(node.value, bytes):
            return node.value
        if isinstance(node, ast.Name) and node.id in JS_CONSTANTS:
            return JS_CONSTANTS[node.id]
        if isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.USub):
            value = self._literal(node.operand)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return -value
        if isinstance(node, (ast.List, ast.Tuple)):
            return [self._literal(item) for item in node.elts]
        if isinstance(node, ast.Dict):
            result = {}
            for key, value in zip(node.keys, node.values):
                if key is None:
                    raise SnippetRejected("Spread in object literal is not allowed")
                result[self._key(key)] = self._literal(value)
            return result
        raise SnippetRejected(f"Unsupported argument: {ast.dump(node)[:60]}")

    @staticmethod
    def _key(node: ast.AST) -> str:
        # JS object keys may be bare words: {css: '#go'}
        if isinstance(node, ast.Name):
            return node.id
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            return node.value
        raise SnippetRejected("Object keys must be names or strings")
