"""Tests for container wiring."""

from nutrition_calibration.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.validation_service.failure_repository is not None
    assert container.learning_service.max_retries == settings.learning_max_retries
    assert container.accuracy_service.repository is container.correction_service.repository
    assert container.library_service is not None


def test_settings_override_thresholds(settings) -> None:
    tuned = settings.model_copy(update={"high_sodium_threshold": 2000.0})

    container = build_container(tuned)

    assert container.validation_service.high_sodium_threshold == 2000.0
