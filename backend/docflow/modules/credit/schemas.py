from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from docflow.modules.documents.schemas import DocumentPayload


class CreditDispositionRequest(BaseModel):
    document: str = Field(..., description="Credit agreement as 'data:application/pdf;base64,<payload>'")
    file_name: str | None = None


# --- Disposition card ---


class SublimitDetail(BaseModel):
    amount: float | None = Field(None, description="Sublimit amount, number only")
    currency: str | None = None
    availability_period: str | None = None
    expiry_date: str | None = Field(None, description="YYYY-MM-DD")
    purpose: str | None = None
    investment_phase: str | None = None
    repayment_order: str | None = None


class EarlyRepaymentConditions(BaseModel):
    mandatory_allowed: bool | None = None
    voluntary_allowed: bool | None = None
    funding_sources: str | None = None
    commission_rate: float | None = Field(None, description="Early repayment fee in percent, number only")
    principal_and_interest_order: str | None = None
    moratorium_details: str | None = None


class PenaltySanctions(BaseModel):
    late_principal_payment: str | None = Field(None, description='e.g. "0.1% of the overdue amount per day"')
    late_interest_payment: str | None = None
    late_commission_payment: str | None = None
    indexation: bool | None = None


class FinancialIndicators(BaseModel):
    accrued_interest_rate: float | None = Field(None, description="Percent, e.g. 12.5")
    capitalized_interest_rate: float | None = None
    accrued_interest_calculation_rules: str | None = None
    interest_payment_regulations: str | None = None
    debt_and_commission_reserving_params: str | None = None
    insurance_product_codes: str | None = None
    special_contract_conditions: str | None = None


class CreditDispositionCard(BaseModel):
    """Registration order for a credit agreement; any attribute may be unknown."""

    # General
    statement_number: str | None = None
    statement_date: str | None = None
    borrower_name: str | None = None
    borrower_inn: str | None = None
    contract_number: str | None = None
    contract_date: str | None = None
    credit_type: Literal["credit line", "revolving credit line"] | None = None
    limit_currency: str | None = None
    contract_amount: float | None = Field(None, description="Total amount, number only")
    bank_unit_code: str | None = None
    contract_term: str | None = Field(None, description='e.g. "36 months" or "until DD.MM.YYYY"')
    borrower_account_number: str | None = None
    enterprise_category: Literal["medium", "small", "micro", "not applicable"] | None = None
    credit_committee_decision: str | None = None
    subsidy_agent: str | None = None
    general_notes: str | None = None

    # IFRS
    sppi_test_result: str | None = None
    asset_ownership_business_model: Literal["hold to sell", "hold to collect", "other"] | None = None
    market_transaction_assessment: Literal["market", "non-market", "could not be determined"] | None = None

    # Commissions
    commission_type: Literal["fixed", "variable", "none", "combined"] | None = None
    commission_calculation_method: str | None = None
    commission_payment_schedule: list[str] | None = Field(None, description="Payment dates, YYYY-MM-DD")

    early_repayment_conditions: EarlyRepaymentConditions | None = None
    penalty_sanctions: PenaltySanctions | None = None
    sublimit_details: list[SublimitDetail] | None = None
    financial_indicators: FinancialIndicators | None = None

    # Administrative
    final_credit_quality_category: Literal["good", "problem", "overdue", "not determined"] | None = None
    disposition_executor_name: str | None = None
    authorized_signatory: str | None = None


class CreditDisposition(BaseModel):
    disposition_card: CreditDispositionCard


# --- Prompt input ---


class CreditPromptInput(BaseModel):
    document: DocumentPayload

    @field_validator("document")
    @classmethod
    def _require_media(cls, document: DocumentPayload) -> DocumentPayload:
        if not document.is_media_document:
            raise ValueError("credit disposition needs an attached document")
        return document
