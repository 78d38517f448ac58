"""
Copysmith Test Suite.

Test modules:
- test_config: Configuration defaults and validation
- test_models: Preference models and legacy migration
- test_response_parser: Splitting model output into display parts
- test_usage_gate: Daily quotas and the day-scoped store
- test_storage: Autosave key/value store
- test_content_prompts: Prompt composition
- test_source_researcher: Search, vet, format, verify
- test_gemini_client: Model boundary wrapping
- test_orchestrator: End-to-end generation flows
- test_json_parser: JSON extraction from model output
"""
