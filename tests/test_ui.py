from healthchat.emergency import analyze_emergency
from healthchat.schemas import TraceRecord
from healthchat.ui import emergency_banner, normalize_content, respond, trace_markdown


def test_normalize_content():
    assert normalize_content("plain") == "plain"
    assert normalize_content([{"type": "text", "text": "a"}, "b"]) == "ab"
    assert normalize_content(3) == "3"


def test_trace_markdown_lists_each_step_once():
    trace = [
        TraceRecord(name="classify_intent", args={}, result={}),
        TraceRecord(name="analyze_emergency", args={}, result={}),
        TraceRecord(name="analyze_emergency", args={}, result={}),
    ]
    md = trace_markdown(trace, "canned")
    assert md.count("analyze_emergency") == 1
    assert "Canned reply" in md
    assert trace_markdown([]) == "_Waiting for input…_"


def test_emergency_banner():
    assert emergency_banner(None) == ""
    assert emergency_banner(analyze_emergency("I have a mild headache")) == ""
    banner = emergency_banner(analyze_emergency("heart attack"))
    assert "CRITICAL" in banner
    assert "heart attack" in banner


def test_respond_streams_history(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    updates = list(respond("Hello", []))
    ui_history, textbox, trace_md, banner = updates[-1]
    assert [m["role"] for m in ui_history] == ["user", "assistant"]
    assert ui_history[-1]["content"]
    assert textbox == ""
    assert "classify_intent" in trace_md
    assert banner == ""
