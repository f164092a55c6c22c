from __future__ import annotations

import asyncio

import structlog

from docflow.core.config import settings
from docflow.engine.client import ExtractionClient
from docflow.engine.prompts import PromptTemplate, register_template
from docflow.engine.retry import policy_for
from docflow.engine.runner import Sleep, extract_with_retry
from docflow.modules.credit.schemas import (
    CreditDisposition,
    CreditDispositionCard,
    CreditDispositionRequest,
    CreditPromptInput,
    EarlyRepaymentConditions,
    FinancialIndicators,
    PenaltySanctions,
)
from docflow.modules.documents.decoder import DocumentDecoder
from docflow.modules.documents.shaper import shape_document, shape_request

logger = structlog.get_logger()

CREDIT_MEDIA_TYPES = frozenset({"application/pdf"})

CREDIT_DISPOSITION = register_template(
    PromptTemplate(
        id="generate_credit_disposition",
        system="You are an assistant that analyzes credit agreements.",
        instructions="""\
Analyze the credit agreement below and extract the attributes of a "registration \
order" (disposition card) for it.

{document_block}

Leave out any attribute the agreement does not state or that cannot be determined \
unambiguously. Dates are YYYY-MM-DD. Amounts and rates are plain numbers \
(1500000.75, 12.5), without currency signs or text. Booleans are true or false.

disposition_card:
- General: statement_number, statement_date, borrower_name, borrower_inn, \
contract_number, contract_date, credit_type ("credit line" or "revolving credit \
line"), limit_currency, contract_amount, bank_unit_code, contract_term ("36 \
months", "until DD.MM.YYYY"), borrower_account_number, enterprise_category \
("medium", "small", "micro", "not applicable"), credit_committee_decision \
(protocol number and date; "decision taken" or "no decision" if only yes/no is \
stated), subsidy_agent, general_notes (special conditions, subsidies, \
preferential rates).
- IFRS: sppi_test_result, asset_ownership_business_model ("hold to sell", "hold \
to collect", "other"), market_transaction_assessment ("market", "non-market", \
"could not be determined").
- Commissions: commission_type ("fixed", "variable", "none", "combined"), \
commission_calculation_method, commission_payment_schedule (list of dates).
- early_repayment_conditions: mandatory_allowed, voluntary_allowed, \
funding_sources, commission_rate (percent), principal_and_interest_order, \
moratorium_details.
- penalty_sanctions: late_principal_payment, late_interest_payment, \
late_commission_payment, indexation.
- sublimit_details: one object per sublimit with amount, currency, \
availability_period, expiry_date, purpose, investment_phase, repayment_order; \
an empty list when there are none.
- financial_indicators: accrued_interest_rate, capitalized_interest_rate, \
accrued_interest_calculation_rules, interest_payment_regulations, \
debt_and_commission_reserving_params, insurance_product_codes, \
special_contract_conditions.
- Administrative: final_credit_quality_category ("good", "problem", "overdue", \
"not determined"), disposition_executor_name, authorized_signatory.

Write all text in {language}.
""",
    )
)


def with_defaults(card: CreditDispositionCard) -> CreditDispositionCard:
    """Replace absent lists and nested sections with empty ones."""
    return card.model_copy(
        update={
            "commission_payment_schedule": card.commission_payment_schedule or [],
            "sublimit_details": card.sublimit_details or [],
            "early_repayment_conditions": card.early_repayment_conditions or EarlyRepaymentConditions(),
            "penalty_sanctions": card.penalty_sanctions or PenaltySanctions(),
            "financial_indicators": card.financial_indicators or FinancialIndicators(),
        }
    )


async def generate_credit_disposition(
    request: CreditDispositionRequest,
    client: ExtractionClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> CreditDisposition:
    """Build the disposition card of a credit agreement PDF."""
    decoder = DocumentDecoder(CREDIT_MEDIA_TYPES, allow_text=False, max_size_bytes=settings.max_document_size_bytes)
    document = shape_document(decoder.decode_encoded(request.document), request.file_name)
    result = await extract_with_retry(
        client,
        CREDIT_DISPOSITION,
        shape_request(document),
        CreditPromptInput,
        CreditDisposition,
        policy=policy_for("credit", retry_no_output=True),
        sleep=sleep,
    )

    card = with_defaults(result.disposition_card)
    logger.info(
        "credit_disposition_generated",
        file_name=request.file_name,
        contract_number=card.contract_number,
        sublimits=len(card.sublimit_details or []),
    )
    return CreditDisposition(disposition_card=card)
