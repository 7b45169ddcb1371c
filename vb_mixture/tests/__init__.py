"""
Test Suite

- test_models: component and mixing-model contract implementations
- test_vb_mixture: batch VB engine
- test_online: online and non-stationary updates
- test_utils: monitoring, metrics, logging and data generators
"""
