"""Unit tests for DDU checklist verification and the credit disposition card."""

from __future__ import annotations

import json
from datetime import date

import pytest

from docflow.core.errors import EngineNoOutputError, MalformedInputError, UnsupportedFormatError
from docflow.engine.client import ExtractionClient
from docflow.modules.credit.schemas import CreditDispositionRequest, EarlyRepaymentConditions
from docflow.modules.credit.service import generate_credit_disposition
from docflow.modules.verification.schemas import ChecklistItem, VerificationStatus, VerifyDduRequest
from docflow.modules.verification.service import NOT_VERIFIED_COMMENT, verify_ddu


@pytest.fixture
def ddu(encode):
    def build(*ids: str, content_type: str = "application/pdf") -> VerifyDduRequest:
        return VerifyDduRequest(
            project_completion_date=date(2027, 12, 31),
            document=encode(content_type, b"%PDF"),
            file_name="ddu.pdf",
            checklist=[ChecklistItem(id=i, text=f"condition {i}") for i in ids],
        )

    return build


# ---------------------------------------------------------------------------
# verify_ddu
# ---------------------------------------------------------------------------


async def test_dropped_checklist_item_is_undetermined(engine, extraction_client: ExtractionClient, ddu, sleep) -> None:
    engine.queue(
        {
            "verified_items": [
                {"checklist_item_id": "2", "checklist_item_text": "condition 2", "status": "compliant", "comment": "p. 4.1"}
            ]
        }
    )

    report = await verify_ddu(ddu("1", "2"), extraction_client, sleep=sleep)

    assert [v.checklist_item_id for v in report.verified_items] == ["1", "2"]
    first, second = report.verified_items
    assert first.status is VerificationStatus.undetermined
    assert first.processed is False
    assert first.comment == NOT_VERIFIED_COMMENT
    assert first.checklist_item_text == "condition 1"
    assert second.status is VerificationStatus.compliant
    assert second.processed is True
    assert report.missing_ids == ["1"]


async def test_answers_are_matched_by_id_not_position(engine, extraction_client: ExtractionClient, ddu, sleep) -> None:
    engine.queue(
        {
            "verified_items": [
                {"checklist_item_id": "b", "status": "non-compliant"},
                {"checklist_item_id": "a", "status": "partially compliant"},
                {"checklist_item_id": "zz", "status": "compliant"},
            ]
        }
    )

    report = await verify_ddu(ddu("a", "b"), extraction_client, sleep=sleep)

    assert [(v.checklist_item_id, v.status.value) for v in report.verified_items] == [
        ("a", "partially compliant"),
        ("b", "non-compliant"),
    ]
    # text the engine left out comes from the checklist
    assert [v.checklist_item_text for v in report.verified_items] == ["condition a", "condition b"]


async def test_unknown_status_becomes_placeholder(engine, extraction_client: ExtractionClient, ddu, sleep) -> None:
    engine.queue(
        {
            "verified_items": [
                {"checklist_item_id": "a", "status": "looks fine"},
                {"checklist_item_id": "b", "status": "compliant"},
            ]
        }
    )

    report = await verify_ddu(ddu("a", "b"), extraction_client, sleep=sleep)

    assert [v.processed for v in report.verified_items] == [False, True]
    assert report.missing_ids == ["a"]
    assert engine.call_count == 1


async def test_checklist_and_date_are_sent_in_one_call(engine, extraction_client: ExtractionClient, ddu, sleep) -> None:
    engine.queue({"verified_items": []})
    await verify_ddu(ddu("1", "2", "3"), extraction_client, sleep=sleep)

    assert engine.call_count == 1
    template_id, prompt_input = engine.calls[0]
    assert template_id == "verify_ddu"
    assert prompt_input.project_completion_date == "2027-12-31"
    assert [item["id"] for item in json.loads(prompt_input.checklist_json)] == ["1", "2", "3"]


async def test_duplicate_checklist_ids_are_rejected(engine, extraction_client: ExtractionClient, ddu) -> None:
    with pytest.raises(MalformedInputError):
        await verify_ddu(ddu("1", "1"), extraction_client)
    assert engine.call_count == 0


async def test_ddu_accepts_pdf_only(engine, extraction_client: ExtractionClient, ddu) -> None:
    for content_type in ("text/plain", "image/jpeg", "application/msword"):
        with pytest.raises(UnsupportedFormatError):
            await verify_ddu(ddu("1", content_type=content_type), extraction_client)
    assert engine.call_count == 0


async def test_ddu_no_output_retries_on_two_second_base(engine, extraction_client: ExtractionClient, ddu, sleep) -> None:
    engine.queue(None, {"verified_items": [{"checklist_item_id": "1", "status": "compliant"}]})

    report = await verify_ddu(ddu("1"), extraction_client, sleep=sleep)

    assert report.verified_items[0].processed is True
    assert sleep.delays == [2.0]


def test_empty_checklist_is_rejected(encode) -> None:
    with pytest.raises(ValueError):
        VerifyDduRequest(
            project_completion_date=date(2027, 1, 1),
            document=encode("application/pdf", b"%PDF"),
            checklist=[],
        )


# ---------------------------------------------------------------------------
# generate_credit_disposition
# ---------------------------------------------------------------------------


async def test_credit_card_missing_sections_are_defaulted(
    engine, extraction_client: ExtractionClient, encode, sleep
) -> None:
    engine.queue(
        {
            "disposition_card": {
                "borrower_name": "OOO Stroy",
                "contract_amount": 1500000.75,
                "credit_type": "credit line",
                "early_repayment_conditions": {"voluntary_allowed": True, "commission_rate": 1.5},
            }
        }
    )
    request = CreditDispositionRequest(document=encode("application/pdf", b"%PDF"), file_name="loan.pdf")

    result = await generate_credit_disposition(request, extraction_client, sleep=sleep)

    card = result.disposition_card
    assert card.borrower_name == "OOO Stroy"
    assert card.contract_amount == 1500000.75
    assert card.early_repayment_conditions == EarlyRepaymentConditions(voluntary_allowed=True, commission_rate=1.5)
    assert card.sublimit_details == []
    assert card.commission_payment_schedule == []
    assert card.penalty_sanctions is not None and card.penalty_sanctions.indexation is None
    assert card.financial_indicators is not None


async def test_credit_accepts_pdf_only(engine, extraction_client: ExtractionClient, encode) -> None:
    with pytest.raises(UnsupportedFormatError):
        await generate_credit_disposition(
            CreditDispositionRequest(document=encode("text/plain", b"loan")), extraction_client
        )
    assert engine.call_count == 0


async def test_credit_no_output_exhausts_after_three_attempts(
    engine, extraction_client: ExtractionClient, encode, sleep
) -> None:
    engine.queue(None, {"disposition_card": {"credit_type": "overdraft"}}, None)

    with pytest.raises(EngineNoOutputError):
        await generate_credit_disposition(
            CreditDispositionRequest(document=encode("application/pdf", b"%PDF")), extraction_client, sleep=sleep
        )

    assert engine.call_count == 3
    assert sleep.delays == [1.5, 3.0]
