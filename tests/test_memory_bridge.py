import sys
import textwrap

import pytest

from argus.memory_bridge import ArgusMemory, MemoryBridgeError, MemoryRecord, memory_script_path

FAKE_SCRIPT = textwrap.dedent(
    """
    import json, sys
    command, data = sys.argv[1], json.loads(sys.argv[2])
    if command == "remember":
        if data["content"] == "fail":
            out = {"success": False, "error": "disk full"}
        elif data["content"] == "nomsg":
            out = {"success": True}
        else:
            out = {"success": True, "message": "stored %s:%s:%s" % (data["type"], data["content"], data["reasoning"])}
    elif command == "recall":
        if data["query"] == "broken":
            out = {"success": True, "memories": [{"content": "no type"}]}
        elif data["query"] == "fail":
            out = {"success": False}
        else:
            out = {"success": True, "memories": [
                {"type": data["type"] or "fact", "content": data["query"], "importance": data["limit"], "created_at": None}
            ]}
    elif command == "forget":
        out = {"success": True, "deleted": len(data["match"])} if data["match"] else {"success": True}
    elif command == "crash":
        sys.stderr.write("kaboom")
        sys.exit(3)
    elif command == "garbage":
        print("not json")
        sys.exit(0)
    else:
        out = {"message": "no flag"}
    print(json.dumps(out))
    """
)


@pytest.fixture
def memory(tmp_path):
    script = tmp_path / "memory.py"
    script.write_text(FAKE_SCRIPT)
    return ArgusMemory(script_path=script, python=sys.executable)


def test_remember_returns_confirmation(memory):
    assert memory.remember("fact", "likes tea", "said so", 7.0) == "✅ stored fact:likes tea:said so"


def test_remember_without_message_uses_default(memory):
    assert memory.remember("fact", "nomsg") == "✅ Remembered"


def test_remember_failure_raises_helper_error(memory):
    with pytest.raises(MemoryBridgeError, match="disk full"):
        memory.remember("fact", "fail")


def test_recall_parses_records(memory):
    records = memory.recall("tea", "preference", 4)
    assert records == [MemoryRecord("preference", "tea", 4.0, None)]


def test_recall_failure_without_error_text(memory):
    with pytest.raises(MemoryBridgeError, match="Unknown error"):
        memory.recall("fail")


def test_recall_invalid_record_raises(memory):
    with pytest.raises(MemoryBridgeError, match="Invalid response"):
        memory.recall("broken")


def test_forget_reports_count(memory):
    assert memory.forget("ab") == "✅ Forgot 2 memories"
    assert memory.forget("") == "✅ Forgot 0 memories"


def test_nonzero_exit_raises_with_stderr(memory):
    with pytest.raises(MemoryBridgeError) as info:
        memory.call("crash", {})
    assert str(info.value) == "memory.py failed: kaboom"


def test_non_json_output_raises(memory):
    with pytest.raises(MemoryBridgeError, match="Invalid response"):
        memory.call("garbage", {})


def test_response_without_success_flag_raises(memory):
    with pytest.raises(MemoryBridgeError, match="Invalid response"):
        memory.call("other", {})


def test_missing_interpreter_raises(tmp_path):
    bridge = ArgusMemory(script_path=tmp_path / "memory.py", python=str(tmp_path / "no-python"))
    with pytest.raises(MemoryBridgeError, match="Failed to run memory.py"):
        bridge.recall("x")


def test_default_script_path_names_memory_py():
    assert memory_script_path().name == "memory.py"
    assert ArgusMemory().script_path == memory_script_path()