import pytest

from rulematrix import logs
from rulematrix.coreobj_registry import LIST_PREFIX, CoreObjDef, CoreObjRegistry


class _Recorder:
    def __init__(self):
        self.lines = []

    def _add(self, fmt, args):
        self.lines.append(fmt % args if args else fmt)

    def printf(self, ctx, fmt, *args):
        self._add(fmt, args)

    def debugf(self, ctx, fmt, *args):
        self._add(fmt, args)

    def infof(self, ctx, fmt, *args):
        self._add(fmt, args)

    def warnf(self, ctx, fmt, *args):
        self._add(fmt, args)

    def errorf(self, ctx, fmt, *args):
        self._add(fmt, args)

    def with_fields(self, *args):
        return self

    def text(self):
        return "\n".join(self.lines)


@pytest.fixture
def recorder():
    original = logs.get_logger()
    rec = _Recorder()
    logs.set_logger(rec)
    yield rec
    logs.set_logger(original)


def test_register_valid_def(recorder):
    registry = CoreObjRegistry()
    definition = CoreObjDef({}, "TestObjectV1_0", "desc")
    registry.register(definition)
    assert registry.get("TestObjectV1_0") is definition


def test_non_compliant_sid_warns_but_registers(recorder):
    registry = CoreObjRegistry()
    registry.register(CoreObjDef({}, "invalidSid", "desc"))
    assert registry.get("invalidSid") is not None
    output = recorder.text()
    assert "does not conform to the recommended format" in output
    assert "invalidSid" in output


def test_compliant_sid_does_not_warn(recorder):
    registry = CoreObjRegistry()
    registry.register(CoreObjDef({}, "GoodSid_V1_0", "desc"))
    assert recorder.text() == ""
    assert registry.get("GoodSid_V1_0").sid == "GoodSid_V1_0"


def test_list_type_without_prefix_warns(recorder):
    registry = CoreObjRegistry()
    registry.register(CoreObjDef([], "Items_V1", "desc"))
    assert "is a list type" in recorder.text()


def test_list_type_with_prefix_does_not_warn(recorder):
    registry = CoreObjRegistry()
    registry.register(CoreObjDef([], LIST_PREFIX + "Items_V1", "desc"))
    assert recorder.text() == ""


def test_none_definitions_are_skipped(recorder):
    registry = CoreObjRegistry()
    registry.register(None, CoreObjDef("", "Name_V1"))
    assert [d.sid for d in registry.get_all()] == ["Name_V1"]


def test_get_missing_returns_none(recorder):
    assert CoreObjRegistry().get("Nope_V1") is None


def test_unregister_and_get_all(recorder):
    registry = CoreObjRegistry()
    first = CoreObjDef(0, "First_V1")
    second = CoreObjDef(0, "Second_V1")
    registry.register(first, second)
    assert registry.get_all() == [first, second]
    registry.unregister("First_V1", "Missing_V1")
    assert registry.get_all() == [second]


def test_new_returns_independent_copies():
    definition = CoreObjDef({"items": []}, "Box_V1")
    made = definition.new()
    made["items"].append(1)
    assert definition.new() == {"items": []}