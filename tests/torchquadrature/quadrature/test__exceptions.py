import pytest


class TestExceptions:
    def test_quadrature_warning_is_user_warning(self):
        from torchquadrature.quadrature import QuadratureWarning

        assert issubclass(QuadratureWarning, UserWarning)

    def test_integration_error_is_quadrature_error(self):
        from torchquadrature.quadrature import (
            IntegrationError,
            QuadratureError,
        )

        assert issubclass(IntegrationError, QuadratureError)

    @pytest.mark.parametrize(
        "name,kind",
        [
            ("UnsupportedPointCountError", "UNSUPPORTED_POINT_COUNT"),
            ("PrecisionUnavailableError", "PRECISION_UNAVAILABLE"),
            ("AllocationFailedError", "ALLOCATION_FAILED"),
            ("InvalidParameterError", "INVALID_PARAMETER"),
        ],
    )
    def test_configuration_errors_carry_kind(self, name, kind):
        import torchquadrature.quadrature as quadrature

        error = getattr(quadrature, name)

        assert issubclass(error, quadrature.ConfigurationError)
        assert issubclass(error, ValueError)
        assert error.kind == quadrature.ConfigurationErrorKind[kind]

    def test_configuration_kinds_are_distinct(self):
        from torchquadrature.quadrature import (
            AllocationFailedError,
            InvalidParameterError,
            PrecisionUnavailableError,
            UnsupportedPointCountError,
        )

        kinds = {
            error.kind
            for error in (
                AllocationFailedError,
                InvalidParameterError,
                PrecisionUnavailableError,
                UnsupportedPointCountError,
            )
        }

        assert len(kinds) == 4

    def test_domain_error_is_value_error(self):
        from torchquadrature.quadrature import DomainError, QuadratureError

        assert issubclass(DomainError, QuadratureError)
        assert issubclass(DomainError, ValueError)

    def test_quadrature_warning_can_be_raised(self):
        from torchquadrature.quadrature import QuadratureWarning

        with pytest.warns(QuadratureWarning, match="test"):
            import warnings

            warnings.warn("test", QuadratureWarning)

    def test_integration_error_can_be_raised(self):
        from torchquadrature.quadrature import IntegrationError

        with pytest.raises(IntegrationError, match="failed"):
            raise IntegrationError("integration failed")
