import threading
from unittest.mock import MagicMock

import pytest

from streamfetch.core.decipherer import (
    DecipherCache,
    SandboxedDecipherer,
    ScriptEngine,
    script_identity,
)
from streamfetch.core.errors import DecipherExecutionFailure, LocatorNotFound
from streamfetch.core.locator import locate_decipher_operations
from streamfetch.core.models import DecipherOperations, DecipherState


def _ready(script):
    decipherer = SandboxedDecipherer()
    assert decipherer.initialize(locate_decipher_operations(script))
    return decipherer


def test_fixture_script_deciphers(player_script):
    decipherer = _ready(player_script)
    assert decipherer.state is DecipherState.READY
    assert decipherer.decipher("ABCDEFG") == "DEFG"


def test_self_contained_function():
    decipherer = _ready('function Qz(a){a=a.split("");a.reverse();return a.join("")}')
    assert decipherer.decipher("abc") == "cba"


def test_uninitialized():
    decipherer = SandboxedDecipherer()
    assert decipherer.state is DecipherState.UNINITIALIZED
    assert decipherer.decipher("abc") is None
    with pytest.raises(DecipherExecutionFailure, match="uninitialized"):
        decipherer.decipher_or_raise("abc")


def test_empty_operations_fail():
    decipherer = SandboxedDecipherer()
    assert not decipherer.initialize(None)
    assert decipherer.state is DecipherState.FAILED
    assert not decipherer.initialize(DecipherOperations(function_name="", function_code=""))
    assert decipherer.decipher("abc") is None


def test_non_string_result():
    decipherer = _ready('function Nn(a){a=a.split("");return a.length}')
    with pytest.raises(DecipherExecutionFailure, match="not a string"):
        decipherer.decipher_or_raise("abcdefg")


def test_engine_rejecting_source():
    engine = MagicMock(spec=ScriptEngine)
    engine.load.side_effect = SyntaxError("unexpected token")
    decipherer = SandboxedDecipherer(engine)
    ops = DecipherOperations(function_name="Fn", function_code="function Fn(a){")
    assert not decipherer.initialize(ops)
    assert decipherer.state is DecipherState.FAILED
    assert "unexpected token" in decipherer.error


def test_invoke_error_is_wrapped():
    engine = MagicMock(spec=ScriptEngine)
    engine.invoke.side_effect = RuntimeError("boom")
    decipherer = SandboxedDecipherer(engine)
    assert decipherer.initialize(DecipherOperations("Fn", "function Fn(a){return a}"))
    with pytest.raises(DecipherExecutionFailure, match="boom"):
        decipherer.decipher_or_raise("x")
    # A failed call does not poison the context.
    assert decipherer.ready


def test_helper_loaded_before_function():
    engine = MagicMock(spec=ScriptEngine)
    decipherer = SandboxedDecipherer(engine)
    decipherer.initialize(DecipherOperations("Fn", "function Fn(a){}", "Hp", "var Hp={};"))
    engine.load.assert_called_once_with("var Hp={};\nfunction Fn(a){}")
    engine.resolve.assert_called_once_with(engine.load.return_value, "Fn")


def test_calls_are_serialised(player_script):
    decipherer = _ready(player_script)
    results = []

    def work():
        for _ in range(5):
            results.append(decipherer.decipher("ABCDEFG"))

    threads = [threading.Thread(target=work) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert results == ["DEFG"] * 20


def test_script_identity():
    assert script_identity("abc", "https://h/base.js") == "https://h/base.js"
    assert script_identity("abc") == script_identity("abc")
    assert script_identity("abc") != script_identity("abd")
    assert script_identity("abc").startswith("sha1:")


def test_cache_builds_once_per_script(player_script):
    cache = DecipherCache()
    first = cache.get(player_script, "https://h/base.js")
    second = cache.get(player_script, "https://h/base.js")
    assert first is second
    assert len(cache) == 1
    assert "https://h/base.js" in cache

    other = cache.get(player_script)
    assert other is not first
    assert len(cache) == 2

    cache.clear()
    assert len(cache) == 0


def test_cache_remembers_locator_failure():
    locator = MagicMock()
    locator.locate.side_effect = LocatorNotFound("no function")
    cache = DecipherCache(locator=locator)
    for _ in range(2):
        with pytest.raises(LocatorNotFound):
            cache.get("var x=1;", "https://h/old.js")
    locator.locate.assert_called_once()


def test_multi_character_parameter_deciphers():
    script = (
        'var Hp={ab:function(a,b){a.splice(0,b)}};'
        'Qz=function(xy){xy=xy.split("");Hp.ab(xy,3);return xy.join("")};'
    )
    decipherer = _ready(script)
    assert decipherer.decipher("ABCDEFG") == "DEFG"


def test_lookup(player_script):
    cache = DecipherCache()
    assert cache.lookup("https://h/base.js") is None
    built = cache.get(player_script, "https://h/base.js")
    assert cache.lookup("https://h/base.js") is built


def test_lookup_of_unusable_script():
    cache = DecipherCache()
    with pytest.raises(LocatorNotFound):
        cache.get("var x=1;", "https://h/old.js")
    with pytest.raises(LocatorNotFound):
        cache.lookup("https://h/old.js")
