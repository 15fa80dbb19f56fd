"""Tests for error handling and Problem Details implementation."""

import json

import pytest
from fastapi import Request
from fastapi.responses import JSONResponse
from unittest.mock import Mock

from user_directory.errors.problem_details import (
    ProblemDetail,
    ProblemDetailException,
    BadRequestError,
    NotFoundError,
    ConflictError,
    InternalServerError,
    ServiceUnavailableError,
    create_problem_response
)


@pytest.fixture
def mock_request():
    request = Mock(spec=Request)
    request.url.path = "/v1/users/cursor"
    return request


class TestProblemDetail:
    """Test ProblemDetail model."""

    def test_problem_detail_defaults(self):
        """Test ProblemDetail with default values."""
        problem = ProblemDetail(title="Test Error", status=400)

        assert problem.type == "about:blank"
        assert problem.title == "Test Error"
        assert problem.status == 400
        assert problem.detail is None
        assert problem.instance is None

    def test_problem_detail_extra_fields(self):
        """Test ProblemDetail allows extension members."""
        problem = ProblemDetail(title="Test Error", status=400, error_code="TEST_001")
        assert problem.error_code == "TEST_001"


class TestProblemDetailException:
    """Test ProblemDetailException base class."""

    def test_basic_exception(self):
        exc = ProblemDetailException(status=400, title="Test Error", detail="Test detail")

        assert exc.status == 400
        assert exc.title == "Test Error"
        assert exc.detail == "Test detail"
        assert exc.type_uri == "about:blank"
        assert exc.instance is None
        assert str(exc) == "Test detail"

    def test_message_falls_back_to_title(self):
        assert str(ProblemDetailException(status=400, title="Test Error")) == "Test Error"

    def test_to_problem_detail_with_request(self, mock_request):
        """Instance defaults to the request path."""
        exc = ProblemDetailException(status=400, title="Test Error", detail="Test detail")

        problem = exc.to_problem_detail(mock_request)

        assert problem.instance == "/v1/users/cursor"

    def test_explicit_instance_wins(self, mock_request):
        exc = ProblemDetailException(status=400, title="Test Error", instance="/elsewhere")
        assert exc.to_problem_detail(mock_request).instance == "/elsewhere"

    def test_to_response(self):
        """Test converting to JSONResponse."""
        exc = BadRequestError("Invalid cursor format", cursor="abc")

        response = exc.to_response()

        assert isinstance(response, JSONResponse)
        assert response.status_code == 400
        assert response.headers["Content-Type"] == "application/problem+json"
        assert json.loads(response.body) == {
            "type": "about:blank",
            "title": "Bad Request",
            "status": 400,
            "detail": "Invalid cursor format",
            "cursor": "abc"
        }


class TestSpecificExceptions:
    """Test specific exception classes."""

    @pytest.mark.parametrize("exc, status, title, detail", [
        (BadRequestError("Invalid input"), 400, "Bad Request", "Invalid input"),
        (NotFoundError(), 404, "Not Found", "Resource not found"),
        (ConflictError("Already exists"), 409, "Conflict", "Already exists"),
        (InternalServerError(), 500, "Internal Server Error", "Internal server error"),
        (ServiceUnavailableError(), 503, "Service Unavailable", "Service temporarily unavailable"),
    ])
    def test_status_and_title(self, exc, status, title, detail):
        assert isinstance(exc, ProblemDetailException)
        assert exc.status == status
        assert exc.title == title
        assert exc.detail == detail

    def test_extensions_are_kept(self):
        exc = ServiceUnavailableError(database_error="connection refused")
        assert exc.extensions == {"database_error": "connection refused"}


class TestCreateProblemResponse:
    """Test create_problem_response function."""

    def test_create_problem_response_basic(self):
        response = create_problem_response(status=400, title="Test Error", detail="Test detail")

        assert response.status_code == 400
        assert response.headers["Content-Type"] == "application/problem+json"

    def test_create_problem_response_with_request(self, mock_request):
        response = create_problem_response(status=404, title="Not Found", request=mock_request)

        body = json.loads(response.body)
        assert body["instance"] == "/v1/users/cursor"
        assert "detail" not in body

    def test_create_problem_response_with_extensions(self):
        response = create_problem_response(status=400, title="Test Error", error_code="TEST_001")
        assert json.loads(response.body)["error_code"] == "TEST_001"
