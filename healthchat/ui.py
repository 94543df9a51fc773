import gradio as gr
from healthchat.config import load_settings
from healthchat.schemas import ChatRequest, ChatMessage, EmergencyResult
from healthchat.orchestrator import handle_turn_stream

TRACE_LABELS = {
    "classify_intent": "Intent gate (medical vs. conversational)",
    "analyze_emergency": "Emergency keyword scan",
    "format_emergency_message": "Render emergency banner",
    "llm_reply": "Medical reply from the LLM",
    "llm_error": "LLM call failed, showing fallback message",
}

ROUTE_LABELS = {
    "canned": "Canned reply (no LLM call)",
    "emergency": "Emergency escalation",
    "emergency_llm": "Emergency banner + LLM reply",
    "development": "Development reply (LLM not configured)",
    "llm": "LLM reply",
}

NO_EMERGENCY = ""

def normalize_content(content) -> str:
    """
    This function is used to normalize the UIs messages into pure strings

    :param content: UIs message
    :return: normalized string
    :rtype: str
    """
    # If already a string, return it
    if isinstance(content, str):
        return content
    # If Gradio gives list of blocks like [{"type":"text","text":"..."}]
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(item["text"])
            elif isinstance(item, str):
                parts.append(item)
        return "".join(parts)
    # Fallback
    return str(content)


def emergency_banner(emergency: EmergencyResult | None) -> str:
    if emergency is None or not emergency.is_emergency:
        return NO_EMERGENCY
    icon = "🚨" if emergency.severity == "critical" else "⚠️"
    keywords = ", ".join(emergency.detected_keywords)
    return f"## {icon} {emergency.severity.upper()}\n**{emergency.recommended_action}**\n\nDetected: {keywords}"


def respond(message, history):
    """
    message: str
    history: list[dict]  (gr.Chatbot messages)
    """
    msg_history = []
    for m in history or []:
        msg_history.append(ChatMessage(role=m["role"], content=normalize_content(m["content"])))

    if not (message or "").strip():
        yield history, "", "_Waiting for input…_", NO_EMERGENCY
        return

    req = ChatRequest(message=message, history=msg_history)

    # Start by echoing the user message in the UI immediately good for UX
    ui_history = (history or []) + [{"role": "user", "content": message}, {"role": "assistant", "content": ""}]
    yield ui_history, "", "_Waiting for input…_", NO_EMERGENCY

    for _delta, partial in handle_turn_stream(req, settings=load_settings(), fail_soft=True):
        ui_history = [{"role": m.role, "content": m.content} for m in partial.history] #back to UI history format
        yield ui_history, "", trace_markdown(partial.trace, partial.route), emergency_banner(partial.emergency)


def build_ui():
    with gr.Blocks(title="Health Chat") as demo: #creates a gradio UI page
        gr.Markdown("# Health Assistant Chat") #title

        with gr.Row():
            #chat interface
            with gr.Column(scale=3):
                chatbot = gr.Chatbot(height=350) ##chat component
                msg = gr.Textbox(placeholder="Describe how you feel...", label="Message")
                send = gr.Button("Send")
            #triage trace and emergency interface
            with gr.Column(scale=2):
                emergency_panel = gr.Markdown(value=NO_EMERGENCY)
                gr.Markdown("Triage Tracing:")
                trace_panel = gr.Markdown(value="_Waiting for input…_")

        send.click(respond, inputs=[msg, chatbot], outputs=[chatbot, msg, trace_panel, emergency_panel],)
        msg.submit(respond, inputs=[msg, chatbot], outputs=[chatbot, msg, trace_panel, emergency_panel],)
    return demo


def trace_markdown(trace, route: str | None = None) -> str:
    """
    Turn the triage steps of a turn into a clean execution timeline (Markdown).
    Shows each step once + a short description.
    """
    if not trace:
        return "_Waiting for input…_"

    seen = set()
    lines = []
    for tc in trace:
        name = getattr(tc, "name", None) or (tc.get("name") if isinstance(tc, dict) else str(tc))
        if not name or name in seen:
            continue
        seen.add(name)
        desc = TRACE_LABELS.get(name, "")
        # show name + description (name helps debugging, description helps reviewer)
        if desc:
            lines.append(f"- ✓ **{name}**: {desc}")
        else:
            lines.append(f"- ✓ **{name}**")

    if route:
        lines.append(f"\n**Route:** {ROUTE_LABELS.get(route, route)}")

    return "\n".join(lines) if lines else "_Waiting for input…_"


if __name__ == "__main__":
    build_ui().launch(server_name="0.0.0.0", server_port=7860)
