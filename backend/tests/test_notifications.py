import logging

from posterboy.services.notifications import LoggingNotifier, Severity


def test_logging_notifier_maps_severity(caplog):
    notifier = LoggingNotifier()
    with caplog.at_level(logging.INFO, logger="posterboy.services.notifications"):
        notifier.notify("Import Successful", "Imported 1 collection", Severity.SUCCESS)
        notifier.notify("Import Failed", "Unsupported file format", Severity.ERROR)

    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.INFO, "Import Successful: Imported 1 collection"),
        (logging.ERROR, "Import Failed: Unsupported file format"),
    ]
