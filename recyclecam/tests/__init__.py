"""
RecycleCam Test Suite
=====================

Property-based tests for critical invariants.

Philosophy:
- Focus on invariants (properties that must always be true)
- Test critical paths (matching, stabilization, session lifecycle, MQTT)
- NOT 100% coverage - only key behaviors

Modules:
- test_matching / test_lexicon: label -> category
- test_region_scoring: region validity + score boosts, target zone
- test_stabilization: rolling history, mode vote, tie-break
- test_confidence: display percent + tiers, UI tips
- test_orchestrator: per-frame flow and session lifecycle
- test_replay: replay classifier
- test_config_validation: pydantic schemas
- test_mqtt_commands / test_publishers: control + data plane
"""
