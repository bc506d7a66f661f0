"""
Execute Request DTO

Shape and bounds validation for execution requests.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationInfo,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from portal_executor.domain.errors import ValidationError
from portal_executor.domain.value_objects import ExecutionRequest
from portal_executor.infrastructure.config import Settings


EXERCISE_ID_PATTERN = r"^[A-Za-z0-9_-]+$"


@dataclass(frozen=True)
class RequestLimits:
    """Configured bounds a request is validated against."""

    max_code_length: int
    min_timeout_ms: float
    max_timeout_ms: float
    min_memory_limit_mb: float
    max_memory_limit_mb: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "RequestLimits":
        return cls(
            max_code_length=settings.max_code_length,
            min_timeout_ms=settings.min_timeout_ms,
            max_timeout_ms=settings.max_timeout_ms,
            min_memory_limit_mb=settings.min_memory_limit_mb,
            max_memory_limit_mb=settings.max_memory_limit_mb,
        )


def _limits(info: ValidationInfo) -> RequestLimits:
    if not info.context or "limits" not in info.context:
        raise RuntimeError("ExecuteRequestDTO must be validated with a 'limits' context")
    return info.context["limits"]


class ExecuteRequestDTO(BaseModel):
    """
    Request DTO for code execution.

    Accepts both snake_case and the camelCase wire names
    (``exerciseId``, ``runTests``, ``testCode``, ``memoryLimit``).
    Length and range bounds come from the ``limits`` validation context.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: StrictStr = Field(..., min_length=1, description="Python source to execute")
    exercise_id: StrictStr = Field(
        ..., alias="exerciseId", pattern=EXERCISE_ID_PATTERN, description="Exercise identifier"
    )
    run_tests: StrictBool = Field(..., alias="runTests", description="Run and parse test code")
    test_code: Optional[StrictStr] = Field(default=None, alias="testCode", description="Test script")
    timeout: Optional[float] = Field(default=None, description="Timeout in milliseconds")
    memory_limit: Optional[float] = Field(default=None, alias="memoryLimit", description="Memory ceiling in MB")

    @field_validator("code", "test_code")
    @classmethod
    def _check_length(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        limit = _limits(info).max_code_length
        if value is not None and len(value) > limit:
            raise ValueError(f"length must be less than or equal to {limit} characters")
        return value

    @field_validator("timeout")
    @classmethod
    def _check_timeout(cls, value: Optional[float], info: ValidationInfo) -> Optional[float]:
        limits = _limits(info)
        if value is not None and not limits.min_timeout_ms <= value <= limits.max_timeout_ms:
            raise ValueError(
                f"must be between {limits.min_timeout_ms:g} and {limits.max_timeout_ms:g} milliseconds"
            )
        return value

    @field_validator("memory_limit")
    @classmethod
    def _check_memory_limit(cls, value: Optional[float], info: ValidationInfo) -> Optional[float]:
        limits = _limits(info)
        if value is not None and not limits.min_memory_limit_mb <= value <= limits.max_memory_limit_mb:
            raise ValueError(
                f"must be between {limits.min_memory_limit_mb:g} and {limits.max_memory_limit_mb:g} MB"
            )
        return value

    def to_domain(self) -> ExecutionRequest:
        """
        Convert DTO to domain ExecutionRequest value object.

        Returns:
            ExecutionRequest value object
        """
        return ExecutionRequest(
            code=self.code,
            exercise_id=self.exercise_id,
            run_tests=self.run_tests,
            test_code=self.test_code,
            timeout=self.timeout,
            memory_limit=self.memory_limit,
        )


def describe_validation_error(error: PydanticValidationError) -> str:
    """Flatten pydantic errors into one human-readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "request"
        message = item["msg"].removeprefix("Value error, ")
        parts.append(f"{location}: {message}")
    return "; ".join(parts)


class RequestValidator:
    """
    Validates execution requests against configured limits.

    Runs independently of any validation done by the caller. Failures are
    raised as ValidationError with a message meant to be shown verbatim.
    """

    def __init__(self, limits: RequestLimits):
        self._limits = limits

    def validate(
        self, request: Union[Mapping[str, Any], ExecutionRequest, ExecuteRequestDTO]
    ) -> ExecutionRequest:
        """
        Validate a request.

        Args:
            request: Raw mapping (wire or snake_case names), a domain
                ExecutionRequest, or a DTO

        Returns:
            Validated domain ExecutionRequest

        Raises:
            ValidationError: If any field is missing, mistyped or out of bounds
        """
        if isinstance(request, ExecutionRequest):
            data: Any = request.to_dict()
        elif isinstance(request, ExecuteRequestDTO):
            data = request.model_dump()
        else:
            data = request

        try:
            dto = ExecuteRequestDTO.model_validate(data, context={"limits": self._limits})
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid execution request: {describe_validation_error(e)}") from None

        return dto.to_domain()
