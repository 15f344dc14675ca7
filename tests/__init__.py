"""
Order Fraud Engine Test Suite

Test Structure:
- tests/fraud_detection/ - detectors, scoring, configuration, models, service

Run all tests: pytest
Run with coverage: pytest --cov=fraud_engine --cov-report=html
Run specific module: pytest tests/fraud_detection/test_detectors.py
"""
