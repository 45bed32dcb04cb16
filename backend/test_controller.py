"""Tests for the assistant pipeline: stages, controller, notifications"""

import base64
import json

import pytest

from arduino_lab.ir.components import Component
from arduino_lab.ir.errors import TransportError
from arduino_lab.ir.instructions import InstructionStep
from arduino_lab.ir.project import ProjectList
from arduino_lab.pipeline import events
from arduino_lab.pipeline.controller import FAILED, NO_RESULTS, OK, AssistantController

PROJECTS = {
    "projects": [
        {
            "title": "Servo Sweep",
            "description": "Sweep a servo with a potentiometer.",
            "components": [
                {"item": "arduino", "quantity": 1},
                {"item": "servo_motor", "quantity": 1},
                {"item": "potentiometer", "quantity": 1},
            ],
        }
    ]
}

INSTRUCTIONS = {
    "instructions": [
        {"step": 1, "text": "Wire the servo.", "code": None, "image_prompt": "Servo on pin 9"},
        {
            "step": 2,
            "text": "Upload the sketch.",
            "code": {"language": "arduino", "snippet": "#include <Servo.h>"},
            "image_prompt": "USB cable to laptop",
        },
    ]
}


@pytest.fixture
def controller(fake_client):
    return AssistantController(
        client=fake_client,
        vision_model="chatgpt-4o-latest",
        image_model="gpt-image-1-mini",
    )


def stock(controller, *items):
    for item in items:
        controller.context.inventory.add_quantity(item, 1)


def test_scan_then_accept(controller, fake_client, chat_response, png_bytes):
    fake_client.queue(chat_response('```json\n{"components": [{"item": "led", "quantity": 4}]}\n```'))

    outcome = controller.scan_components(png_bytes)

    assert outcome.status == OK
    assert [c.item for c in outcome.items] == ["led"]
    assert fake_client.payloads[0]["max_tokens"] == 500
    assert fake_client.payloads[0]["model"] == "chatgpt-4o-latest"

    added = controller.add_detected_to_inventory()
    assert added == [Component(item="led", quantity=4)]
    assert controller.context.inventory.get("led").quantity == 4
    assert controller.context.detected_components == []


def test_scan_with_bad_image_never_sends(controller, fake_client):
    outcome = controller.scan_components(b"garbage")

    assert outcome.status == FAILED
    assert outcome.errors[0].level == "encoding"
    assert fake_client.payloads == []
    assert controller.context.errors


def test_scan_without_components_is_no_results(controller, fake_client, chat_response, png_bytes):
    fake_client.queue(chat_response('{"components": []}'))

    outcome = controller.scan_components(png_bytes)

    assert outcome.ok
    assert outcome.status == NO_RESULTS
    assert controller.context.errors == []


def test_rejected_scan_keeps_previous_detection(controller, fake_client, chat_response, png_bytes):
    controller.context.detected_components = [Component(item="relay", quantity=1)]
    fake_client.queue(chat_response('{"components": [{"item": "led", "quantity": -3}]}'))

    outcome = controller.scan_components(png_bytes)

    assert outcome.status == FAILED
    assert outcome.errors[0].level == "parse"
    assert "components[0]" in outcome.errors[0].message
    assert controller.context.detected_components == [Component(item="relay", quantity=1)]


def test_transport_error_is_recorded_with_body(controller, fake_client):
    stock(controller, "arduino", "led", "diode")
    fake_client.queue(TransportError("OpenAI returned HTTP 429", status_code=429, body='{"error": "slow down"}'))

    outcome = controller.suggest_projects()

    assert outcome.status == FAILED
    assert outcome.errors[0].level == "transport"
    assert "slow down" in outcome.errors[0].message
    assert len(fake_client.payloads) == 1


def test_suggestions_need_three_components(controller, fake_client):
    stock(controller, "arduino", "led")

    outcome = controller.suggest_projects()

    assert outcome.errors[0].level == "precondition"
    assert fake_client.payloads == []


def test_full_project_flow(controller, fake_client, chat_response, png_bytes):
    stock(controller, "arduino", "servo_motor", "potentiometer", "led")
    fake_client.queue(chat_response(json.dumps(PROJECTS)))

    outcome = controller.suggest_projects()
    assert outcome.status == OK
    assert controller.context.project_suggestions[0].title == "Servo Sweep"

    prompt = fake_client.payloads[0]["messages"][0]["content"]
    assert "arduino x1\nservo_motor x1\npotentiometer x1\nled x1\n" in prompt
    assert fake_client.payloads[0]["max_tokens"] == 1000

    assert controller.select_project(0).is_valid
    assert [c.item for c in controller.context.inventory.non_zero()] == [
        "arduino",
        "servo_motor",
        "potentiometer",
    ]

    fake_client.queue(chat_response(json.dumps(INSTRUCTIONS)))
    outcome = controller.generate_instructions()
    assert outcome.status == OK
    assert len(controller.context.instructions) == 2
    assert fake_client.payloads[1]["max_tokens"] == 15000
    assert "Servo Sweep" in fake_client.payloads[1]["messages"][0]["content"]

    fake_client.queue(json.dumps({"data": [{"b64_json": base64.b64encode(png_bytes).decode()}]}))
    outcome = controller.illustrate_step(0)
    assert outcome.status == OK
    assert controller.context.step_images[0] == png_bytes
    assert fake_client.payloads[2] == {
        "model": "gpt-image-1-mini",
        "prompt": "Servo on pin 9",
        "size": "1024x1024",
    }


def test_select_project_out_of_range(controller):
    result = controller.select_project(3)
    assert not result.is_valid
    assert result.errors[0].level == "not_found"


def test_instructions_need_a_selected_project(controller, fake_client):
    outcome = controller.generate_instructions()
    assert outcome.errors[0].level == "precondition"
    assert fake_client.payloads == []


def test_illustration_step_out_of_range(controller):
    outcome = controller.illustrate_step(0)
    assert outcome.errors[0].level == "precondition"

    controller.context.instructions = [
        InstructionStep(step=1, text="t", image_prompt="p"),
    ]
    outcome = controller.illustrate_step(5)
    assert outcome.errors[0].level == "not_found"


def test_subscribers_receive_parsed_results(controller, fake_client, chat_response, png_bytes):
    received = []
    unsubscribe = controller.notifier.subscribe(events.COMPONENTS, received.append)

    raw = chat_response('{"components": [{"item": "relay", "quantity": 2}]}')
    fake_client.queue(raw)
    controller.scan_components(png_bytes)

    assert len(received) == 1
    assert received[0].raw == raw
    assert received[0].items[0].item == "relay"

    unsubscribe()
    fake_client.queue(raw)
    controller.scan_components(png_bytes)
    assert len(received) == 1


def test_stale_response_is_dropped(controller, fake_client, chat_response, png_bytes):
    received = []
    controller.notifier.subscribe(events.COMPONENTS, received.append)

    # a newer scan starts while the first one is still waiting on the network
    fake_client.before_return = lambda: controller.tracker.begin(events.COMPONENTS)
    fake_client.queue(chat_response('{"components": [{"item": "led", "quantity": 1}]}'))

    outcome = controller.scan_components(png_bytes)

    assert outcome.status == OK
    assert not outcome.current
    assert outcome.items[0].item == "led"
    assert controller.context.detected_components == []
    assert received == []


def test_broken_listener_does_not_block_others(controller, fake_client, chat_response, png_bytes):
    received = []

    def broken(event):
        raise RuntimeError("render failed")

    controller.notifier.subscribe(events.COMPONENTS, broken)
    controller.notifier.subscribe(events.COMPONENTS, received.append)

    fake_client.queue(chat_response('{"components": []}'))
    controller.scan_components(png_bytes)

    assert len(received) == 1
    assert received[0].no_results


def test_stale_failure_is_not_recorded(controller, fake_client):
    stock(controller, "arduino", "led", "diode")
    fake_client.before_return = lambda: controller.tracker.begin(events.PROJECTS)
    fake_client.queue(TransportError("OpenAI returned HTTP 500", status_code=500, body="boom"))

    outcome = controller.suggest_projects()

    assert outcome.status == FAILED
    assert not outcome.current
    assert outcome.errors[0].level == "transport"
    assert controller.context.errors == []


def test_instruction_outcome_keeps_title_when_suggestions_overlap(controller, fake_client, chat_response):
    stock(controller, "arduino", "servo_motor", "potentiometer")
    fake_client.queue(chat_response(json.dumps(PROJECTS)))
    controller.suggest_projects()
    controller.select_project(0)

    # new suggestions land while the instructions are still in flight
    fake_client.queue(chat_response(json.dumps(INSTRUCTIONS)))
    fake_client.queue(chat_response(json.dumps(PROJECTS)))

    def overlap():
        fake_client.before_return = None
        controller.suggest_projects()

    fake_client.before_return = overlap

    outcome = controller.generate_instructions()

    assert outcome.status == OK
    assert outcome.title == "Servo Sweep"
    assert controller.context.selected_project is None


def test_select_catalog_project_sends_nothing(fake_client):
    catalog = ProjectList.model_validate(PROJECTS)
    controller = AssistantController(
        client=fake_client,
        vision_model="chatgpt-4o-latest",
        image_model="gpt-image-1-mini",
        catalog=catalog,
    )
    controller.context.inventory.add_quantity("led", 5)
    controller.context.instructions = [InstructionStep(step=1, text="t", image_prompt="p")]

    result = controller.select_catalog_project(0)

    assert result.is_valid
    assert controller.context.selected_project.title == "Servo Sweep"
    assert [c.item for c in controller.context.inventory.non_zero()] == [
        "arduino",
        "servo_motor",
        "potentiometer",
    ]
    assert controller.context.instructions == []
    assert fake_client.payloads == []

    missing = controller.select_catalog_project(1)
    assert missing.errors[0].level == "not_found"
