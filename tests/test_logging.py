import logging

from magic_yarn.core.logging import ContactSafeFilter, build_logging_config, redact_contacts


def test_contact_filter_redacts_email_and_phone(caplog):
    logger = logging.getLogger("test.contact")
    logger.setLevel(logging.INFO)
    logger.filters = []
    logger.addFilter(ContactSafeFilter())

    with caplog.at_level(logging.INFO, logger="test.contact"):
        logger.info("Contact jane.doe@example.org at (212) 555-1234")

    assert "jane.doe@example.org" not in caplog.text
    assert "555-1234" not in caplog.text
    assert "[REDACTED]" in caplog.text


def test_contact_filter_redacts_e164_args(caplog):
    logger = logging.getLogger("test.contact.args")
    logger.setLevel(logging.INFO)
    logger.filters = []
    logger.addFilter(ContactSafeFilter())

    with caplog.at_level(logging.INFO, logger="test.contact.args"):
        logger.info("Updated recipient phone to %s", "+12125551234")

    assert "+12125551234" not in caplog.text
    assert "Updated recipient phone to [REDACTED]" in caplog.text


def test_contact_filter_redacts_access_token_assignment(caplog):
    logger = logging.getLogger("test.token")
    logger.setLevel(logging.INFO)
    logger.filters = []
    logger.addFilter(ContactSafeFilter())

    with caplog.at_level(logging.INFO, logger="test.token"):
        logger.info("google replied access_token=ya29.secret-value, expires_in=3599")

    assert "ya29.secret-value" not in caplog.text
    assert "access_token=[REDACTED]" in caplog.text
    assert "expires_in=3599" in caplog.text


def test_contact_filter_leaves_dates_and_ids_alone(caplog):
    logger = logging.getLogger("test.plain")
    logger.setLevel(logging.INFO)
    logger.filters = []
    logger.addFilter(ContactSafeFilter())

    with caplog.at_level(logging.INFO, logger="test.plain"):
        logger.info("Created %d planned deliveries for %s", 3, "2024-04")

    assert "Created 3 planned deliveries for 2024-04" in caplog.text


def test_redact_contacts_handles_refresh_tokens_and_plain_text():
    assert redact_contacts("refresh_token: 1//abc") == "refresh_token: [REDACTED]"
    assert redact_contacts("Recipient St. Mary's saved") == "Recipient St. Mary's saved"


def test_logging_config_uses_level_and_quiets_sql_echo():
    config = build_logging_config("debug")

    assert config["root"]["level"] == "DEBUG"
    assert config["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert config["handlers"]["console"]["filters"] == ["contact_safe"]
