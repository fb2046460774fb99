# tests/integration/test_parse_pipeline.py
"""
端到端流程：format -> (模拟模型输出) -> parse -> validate_outputs
"""
import pytest

from structguard import (
    ChatAdapter,
    Example,
    FallbackAdapter,
    FieldType,
    JSONAdapter,
    Signature,
    StreamingMarkerFilter,
    TwoStepAdapter,
)


@pytest.fixture
def ticket_signature():
    return (
        Signature(description="Triage a support ticket")
        .add_input("ticket", FieldType.STRING, "Ticket body")
        .add_class_output("priority", ["low", "medium", "high"], "Urgency")
        .add_output("tags", FieldType.JSON, "List of tags")
        .add_output("needs_reply", FieldType.BOOL)
        .add_output("summary")
    )


def test_chat_round_trip_with_streaming_display(ticket_signature):
    adapter = ChatAdapter()
    demo = Example(
        inputs={"ticket": "Printer on fire"},
        outputs={"priority": "high", "tags": ["hardware"], "needs_reply": True, "summary": "Fire"},
    )
    messages = adapter.format(ticket_signature, {"ticket": "Cannot log in"}, [demo])
    assert messages[1].role == "assistant"

    response = (
        "[[ ## priority ## ]]\nMedium\n\n"
        '[[ ## tags ## ]]\n["auth", "login"]\n\n'
        "[[ ## needs_reply ## ]]\ntrue\n\n"
        "[[ ## summary ## ]]\nUser locked out ]]"
    )
    outputs = adapter.parse(ticket_signature, response)
    ticket_signature.validate_outputs(outputs)
    assert outputs == {
        "priority": "medium",
        "tags": ["auth", "login"],
        "needs_reply": True,
        "summary": "User locked out",
    }

    f = StreamingMarkerFilter()
    shown = "".join(f.process_chunk(response[i:i + 5]) for i in range(0, len(response), 5)) + f.flush()
    assert "[[ ##" not in shown
    assert "User locked out" in shown


def test_fallback_recovers_messy_json(ticket_signature):
    response = (
        "Here is my analysis:\n```json\n"
        "{'Priority': 'HIGH', 'tags': ['billing',], 'needs_reply': 'True', 'summary': ['Refund', 'asked']}\n"
        "```"
    )
    outputs = FallbackAdapter().parse(ticket_signature, response)

    assert outputs["__adapter_used"] == "JSONAdapter"
    assert outputs["__json_repair"] is True
    ticket_signature.validate_outputs(outputs)
    assert outputs["priority"] == "high"
    assert outputs["tags"] == ["billing"]
    assert outputs["needs_reply"] is True
    assert outputs["summary"] == "Refund\nasked"


@pytest.mark.asyncio
async def test_two_step_pipeline(ticket_signature, mock_extraction_lm, extraction_response):
    mock_extraction_lm.acompletion.return_value = extraction_response(
        '{"reasoning": "urgent", "priority": "High", "tags": "[\\"ops\\"]", '
        '"needs_reply": false, "summary": "Outage"}'
    )
    adapter = TwoStepAdapter(extraction_lm=mock_extraction_lm)

    stage_one = adapter.format(ticket_signature, {"ticket": "Site is down"})
    assert "JSON" not in stage_one[0].content

    outputs = await adapter.aparse(ticket_signature, "The site is down, this is urgent.")
    ticket_signature.validate_outputs(outputs)
    assert outputs["priority"] == "high"
    assert outputs["tags"] == ["ops"]
    assert outputs["needs_reply"] is False
    assert outputs["reasoning"] == "urgent"


def test_json_adapter_single_field_plain_text():
    sig = Signature().add_input("doc").add_output("summary")
    outputs = JSONAdapter().parse(sig, "A short summary without any JSON.")
    sig.validate_outputs(outputs)
    assert outputs == {"summary": "A short summary without any JSON."}
