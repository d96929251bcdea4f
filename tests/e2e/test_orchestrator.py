import pytest
from datetime import date
from unittest.mock import patch

from po_robot.core.profiles import SANNOTE, YAC
from po_robot.orchestrator import Orchestrator

pytestmark = pytest.mark.e2e


@pytest.fixture
def orchestrator(catalog):
    return Orchestrator(SANNOTE, catalog)


def test_orchestrator_success_flow(orchestrator, order_document, sample_context):
    """
    Verifica se o pipe funciona de ponta a ponta com um documento do Document AI.
    """
    result = orchestrator.process(order_document, sample_context)

    assert result.status == "success"
    assert result.trace_id == "test-trace-123"
    assert result.error is None
    assert len(result.events) == 3 # FLATTEN, RESOLVE, RECONCILE

    # Check Event Sequence
    assert [e.stage for e in result.events] == ["FLATTEN", "RESOLVE", "RECONCILE"]
    assert all(e.status == "SUCCESS" for e in result.events)
    assert result.events[0].details["entity_count"] == 7
    assert result.events[2].details["discrepancy_count"] == 1

    # Check Metadata
    assert "text_hash_sha256" in result.raw_metadata
    assert result.raw_metadata["items_count"] == 3
    assert result.end_time is not None


def test_orchestrator_header_and_items(orchestrator, order_document, sample_context):
    payload = orchestrator.process(order_document, sample_context).payload

    assert [(f.type, f.value) for f in payload.header_fields] == [
        ("order_number", "PO-7781"),
        ("order_date", "2024/01/15"),
        ("delivery_phone_number", "03-1234-5678"),
        ("name", "ACME Trading"),
        ("address", "Tokyo, Chiyoda 1-2-3"),
    ]

    first, second, third = payload.items
    assert first.normalized_code == "2160"
    assert first.corrected_value("product_name") == "Widget A"
    assert first.has_discrepancy is False
    assert second.has_discrepancy is True
    assert second.corrected_value("product_code") == "9999"
    assert third.has_discrepancy is False
    assert payload.discrepancy_count == 1


def test_orchestrator_variant_changes_header_only(catalog, order_document, sample_context):
    sannote = Orchestrator(SANNOTE, catalog).process(order_document, sample_context).payload
    yac = Orchestrator(YAC, catalog).process(order_document, sample_context).payload

    assert yac.processor_type == "yac"
    assert [i.values for i in yac.items] == [i.values for i in sannote.items]


def test_orchestrator_failure_handling(orchestrator, sample_context):
    """
    Verifica se o pipe captura erro e retorna status ERROR com eventos até a falha.
    """
    result = orchestrator.process(None, sample_context)

    assert result.status == "error"
    assert len(result.events) == 1
    assert result.events[0].stage == "FLATTEN"
    assert result.events[0].status == "FAILURE"
    assert result.events[0].error_policy == "ABORT"
    assert result.error.type == "MalformedInputError"
    assert result.payload is None # No payload on error


def test_malformed_nested_entity_has_no_partial_payload(orchestrator, sample_context):
    document = {"text": "", "entities": [{"type": "order_date", "mentionText": "2024-01-15"}, "broken"]}

    result = orchestrator.process(document, sample_context)

    assert result.status == "error"
    assert result.payload is None


def test_orchestrator_reconcile_failure_is_recorded(orchestrator, order_document, sample_context):
    with patch("po_robot.orchestrator.reconcile_rows") as mock_reconcile:
        mock_reconcile.side_effect = RuntimeError("catalog exploded")

        result = orchestrator.process(order_document, sample_context)

    assert result.status == "error"
    assert [e.stage for e in result.events] == ["FLATTEN", "RESOLVE", "RECONCILE"]
    assert result.events[-1].status == "FAILURE"
    assert result.error.message == "catalog exploded"


def test_export_csv_from_flattened_entities(orchestrator, order_document, sample_context):
    payload = orchestrator.process(order_document, sample_context).payload

    export = orchestrator.export_csv(payload.entities, export_date=date(2024, 1, 15))

    assert export.filename == "明細一覧_2024-01-15.csv"
    assert export.row_count == 3
    assert "2160,Widget A" in export.text


def test_empty_document_succeeds(orchestrator, sample_context):
    result = orchestrator.process({"text": "", "entities": []}, sample_context)

    assert result.status == "success"
    assert result.payload.items == []
    assert result.payload.header_fields == []
