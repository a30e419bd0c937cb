"""Pattern-based location of the signature deciphering code in a player script."""

import logging
import re
from typing import Optional, Pattern, Sequence

from .errors import LocatorNotFound
from .models import DecipherOperations

logger = logging.getLogger(__name__)

_NAME = r"[a-zA-Z0-9$]{2,}"
_ARG = r"[a-zA-Z0-9$_]+"
_NOT_MEMBER = r"(?<![a-zA-Z0-9$_.])"
# a=a.split("") right after the opening brace
_SPLIT_HEAD = r"\(\s*(?P<arg>%s)\s*\)\s*\{\s*(?P=arg)\s*=\s*(?P=arg)\.split\(\s*(?:\"\"|'')\s*\)" % _ARG

# Ordered; the first pattern that matches names the function.
FUNCTION_NAME_PATTERNS = (
    re.compile(_NOT_MEMBER + r"(?P<name>%s)\s*=\s*function\s*%s" % (_NAME, _SPLIT_HEAD)),
    re.compile(r"function\s+(?P<name>%s)\s*%s" % (_NAME, _SPLIT_HEAD)),
    re.compile(_NOT_MEMBER + r"(?P<name>%s)\s*:\s*function\s*%s" % (_NAME, _SPLIT_HEAD)),
)

# Body with at most one level of nested braces.
_BODY = r"(?P<body>[^{}]*(?:\{[^{}]*\}[^{}]*)*)"


def _function_def_re(name: str) -> str:
    n = re.escape(name)
    return (
        r"(?:function\s+" + n
        + r"|(?:var|const|let)\s+" + n + r"\s*=\s*function"
        + r"|" + _NOT_MEMBER + n + r"\s*=\s*function"
        + r"|" + _NOT_MEMBER + n + r"\s*:\s*function)"
        + r"\s*\((?P<params>[^)]*)\)\s*\{" + _BODY + r"\}"
    )


def _object_def_re(name: str) -> str:
    return r"(?:var|const|let)\s+" + re.escape(name) + r"\s*=\s*\{" + _BODY + r"\}\s*;?"


_HELPER_CALL_RE = re.compile(_NOT_MEMBER + r"([a-zA-Z0-9$_]{2,})\.([a-zA-Z0-9$_]{2,})\s*\(")
_PARAMS_RE = re.compile(r"\(([^)]*)\)")
# Methods the function calls on its own argument, never on the helper.
_BUILTIN_METHODS = frozenset(("split", "join", "reverse", "splice", "slice", "push", "pop", "shift"))


class ScriptFunctionLocator:
    """Finds the deciphering function and its helper object in player script text."""

    def __init__(self, patterns: Sequence[Pattern] = FUNCTION_NAME_PATTERNS):
        self.patterns = tuple(patterns)

    def find_function_name(self, script: str) -> Optional[str]:
        for pattern in self.patterns:
            match = pattern.search(script)
            if match:
                return match.group("name")
        return None

    @staticmethod
    def extract_function_code(script: str, name: str) -> Optional[str]:
        """Rebuild ``name``'s definition as a standalone function declaration."""
        regex = _function_def_re(name)
        match = re.search(regex, script)
        if not match:
            return None
        params = match.group("params").strip()
        return f"function {name}({params}){{{match.group('body')}}}"

    @staticmethod
    def find_helper_name(function_code: str) -> Optional[str]:
        """Name of the first object whose method the function calls.

        Calls on the function's own parameters and built-in string or array
        methods are skipped.
        """
        params_match = _PARAMS_RE.search(function_code)
        params = set()
        if params_match:
            params = {p.strip() for p in params_match.group(1).split(",") if p.strip()}
        brace = function_code.find("{")
        for match in _HELPER_CALL_RE.finditer(function_code, brace + 1 if brace != -1 else 0):
            receiver, method = match.groups()
            if receiver in params or method in _BUILTIN_METHODS:
                continue
            return receiver
        return None

    @staticmethod
    def extract_object_code(script: str, name: str) -> Optional[str]:
        regex = _object_def_re(name)
        match = re.search(regex, script)
        if not match:
            return None
        return f"var {name}={{{match.group('body')}}};"

    def locate(self, script: str) -> DecipherOperations:
        """
        Locate the deciphering operations in one player script version.

        Raises:
            LocatorNotFound: when the function name or its body is missing.
        """
        if not script:
            raise LocatorNotFound("Player script is empty")

        name = self.find_function_name(script)
        if not name:
            raise LocatorNotFound("No deciphering function matched the known patterns")
        logger.debug(f"Deciphering function name: {name}")

        code = self.extract_function_code(script, name)
        if not code:
            raise LocatorNotFound(f"Could not extract the body of function {name}")

        helper_name = self.find_helper_name(code)
        helper_code = None
        if helper_name is None:
            logger.info(f"Function {name} calls no helper object, assuming it is self-contained")
        else:
            helper_code = self.extract_object_code(script, helper_name)
            if helper_code is None:
                logger.warning(f"Helper object {helper_name} not found; deciphering may fail")

        return DecipherOperations(
            function_name=name,
            function_code=code,
            helper_name=helper_name,
            helper_code=helper_code,
        )


def locate_decipher_operations(script: str) -> DecipherOperations:
    return ScriptFunctionLocator().locate(script)
