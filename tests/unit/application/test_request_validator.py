"""
Unit tests for request validation.
"""

import pytest

from portal_executor.application.dto.execute_request import RequestLimits, RequestValidator
from portal_executor.domain.errors import ValidationError
from portal_executor.domain.value_objects import ExecutionRequest
from tests.utils import valid_request


@pytest.fixture
def validator():
    return RequestValidator(
        RequestLimits(
            max_code_length=100,
            min_timeout_ms=1000,
            max_timeout_ms=30000,
            min_memory_limit_mb=16,
            max_memory_limit_mb=512,
        )
    )


class TestRequestValidator:
    def test_valid_wire_request(self, validator):
        request = validator.validate(
            valid_request(runTests=True, testCode="assert True", timeout=2000, memoryLimit=64)
        )

        assert isinstance(request, ExecutionRequest)
        assert request.exercise_id == "test-exercise"
        assert request.run_tests is True
        assert request.test_code == "assert True"
        assert request.timeout == 2000
        assert request.memory_limit == 64

    def test_snake_case_names_accepted(self, validator):
        request = validator.validate(
            {"code": "print(1)", "exercise_id": "ex_1", "run_tests": False}
        )
        assert request.exercise_id == "ex_1"

    def test_domain_request_is_revalidated(self, validator):
        with pytest.raises(ValidationError):
            validator.validate(ExecutionRequest(code="x" * 101, exercise_id="ex", run_tests=False))

    def test_missing_exercise_id_names_the_field(self, validator):
        request = valid_request()
        del request["exerciseId"]

        with pytest.raises(ValidationError) as exc_info:
            validator.validate(request)

        assert "exerciseId" in exc_info.value.message

    @pytest.mark.parametrize("exercise_id", ["invalid exercise id!", "", "ex/1"])
    def test_bad_exercise_id(self, validator, exercise_id):
        with pytest.raises(ValidationError):
            validator.validate(valid_request(exerciseId=exercise_id))

    def test_code_too_long(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(valid_request(code="x" * 101))
        assert "code" in exc_info.value.message

    def test_test_code_too_long(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(valid_request(runTests=True, testCode="x" * 101))
        assert "testCode" in exc_info.value.message

    def test_code_at_limit_accepted(self, validator):
        assert validator.validate(valid_request(code="x" * 100)).code == "x" * 100

    def test_empty_code_rejected(self, validator):
        with pytest.raises(ValidationError):
            validator.validate(valid_request(code=""))

    @pytest.mark.parametrize("timeout", [999, 30001, -5])
    def test_timeout_out_of_range(self, validator, timeout):
        with pytest.raises(ValidationError):
            validator.validate(valid_request(timeout=timeout))

    @pytest.mark.parametrize("timeout", [1000, 30000])
    def test_timeout_bounds_inclusive(self, validator, timeout):
        assert validator.validate(valid_request(timeout=timeout)).timeout == timeout

    @pytest.mark.parametrize("memory_limit", [15, 513])
    def test_memory_limit_out_of_range(self, validator, memory_limit):
        with pytest.raises(ValidationError):
            validator.validate(valid_request(memoryLimit=memory_limit))

    def test_run_tests_must_be_boolean(self, validator):
        with pytest.raises(ValidationError):
            validator.validate(valid_request(runTests="yes"))

    def test_code_must_be_string(self, validator):
        with pytest.raises(ValidationError):
            validator.validate(valid_request(code=123))

    def test_non_mapping_payload_rejected(self, validator):
        with pytest.raises(ValidationError):
            validator.validate(["not", "a", "request"])
