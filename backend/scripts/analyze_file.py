#!/usr/bin/env python3
"""Run a document flow over a local file.

Reads the file, wraps it as a data URI and prints the flow result as JSON.

Usage:
    python -m scripts.analyze_file report.pdf
    python -m scripts.analyze_file contract.pdf --flow contract
    python -m scripts.analyze_file notes.txt --flow events
    python -m scripts.analyze_file brainstorm.pdf --flow brainstorm
    python -m scripts.analyze_file loan.pdf --flow credit
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import mimetypes
import sys
from pathlib import Path

# Add backend to path for imports
_backend = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_backend))

# Load .env before importing docflow modules
from dotenv import load_dotenv
load_dotenv(_backend / ".env")

import structlog

from docflow.core.config import settings
from docflow.core.errors import DocflowError
from docflow.core.logging import configure_logging
from docflow.engine.client import ExtractionClient
from docflow.engine.gateway import build_engine
from docflow.modules.backlog.schemas import BrainstormRequest
from docflow.modules.backlog.service import generate_backlog_from_brainstorm
from docflow.modules.contracts.schemas import ProcessContractRequest
from docflow.modules.contracts.service import process_contract
from docflow.modules.credit.schemas import CreditDispositionRequest
from docflow.modules.credit.service import generate_credit_disposition
from docflow.modules.documents.schemas import AnalyzeDocumentRequest
from docflow.modules.documents.service import analyze_document, extract_document_events

logger = structlog.get_logger()

FLOWS = ("analyze", "events", "contract", "brainstorm", "credit")


def to_data_uri(path: Path) -> str:
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{content_type};base64,{payload}"


async def run(path: Path, flow: str) -> dict:
    client = ExtractionClient(build_engine())
    document = to_data_uri(path)

    if flow == "analyze":
        result = await analyze_document(AnalyzeDocumentRequest(document=document, file_name=path.name), client)
    elif flow == "events":
        result = await extract_document_events(AnalyzeDocumentRequest(document=document, file_name=path.name), client)
    elif flow == "contract":
        result = await process_contract(ProcessContractRequest(document=document, file_name=path.name), client)
    elif flow == "credit":
        result = await generate_credit_disposition(CreditDispositionRequest(document=document, file_name=path.name), client)
    else:
        result = await generate_backlog_from_brainstorm(BrainstormRequest(document=document, file_name=path.name), client)
    return result.model_dump(mode="json")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a document flow over a local file")
    parser.add_argument("path", type=Path, help="PDF, image or TXT file")
    parser.add_argument("--flow", choices=FLOWS, default="analyze", help="Flow to run (default: analyze)")
    parser.add_argument("--debug", action="store_true", help="Console log output")
    args = parser.parse_args()

    configure_logging(args.debug or settings.debug)
    if not args.path.is_file():
        parser.error(f"Not a file: {args.path}")

    try:
        output = asyncio.run(run(args.path, args.flow))
    except DocflowError as exc:
        logger.error("flow_failed", flow=args.flow, error=type(exc).__name__, detail=exc.user_message)
        sys.exit(1)
    print(json.dumps(output, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
