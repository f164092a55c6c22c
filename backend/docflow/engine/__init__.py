"""Docflow orchestration core.

Everything between a shaped request and a schema-conformant result:
  gateway  : InferenceEngine boundary + provider failure classification
  prompts  : prompt templates and the document block branches
  client   : ExtractionClient: input/output contract around one engine call
  retry    : RetryController: bounded exponential backoff per logical call
  reconcile: completeness reconciliation for single-call batches
  fanout   : concurrent per-item calls with failure isolation
  runner   : extract_with_retry: one client call under one controller
"""
