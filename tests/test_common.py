from catalog_purge.common import RUN_ID, PrintLogger
from catalog_purge.events import emit_log


def test_logger_writes_key_value_lines(tmp_path, capsys):
    log_path = tmp_path / "logs" / "job.log"
    logger = PrintLogger(job_name="nightly", file_path=str(log_path))

    logger.info("job_start", rows=3, path="a b.xlsx")
    logger.debug("hidden")
    logger.close()

    line = log_path.read_text(encoding="utf-8").strip()
    assert "[INFO] job=nightly" in line
    assert f"run_id={RUN_ID}" in line
    assert line.endswith("job_start rows=3 path='a b.xlsx'")
    assert "hidden" not in capsys.readouterr().out


def test_logger_rotates_files(tmp_path):
    log_path = tmp_path / "job.log"
    logger = PrintLogger(job_name="nightly", file_path=str(log_path), max_bytes=200, backup_count=2)

    for index in range(50):
        logger.info("row_deleted", row=index)
    logger.close()

    assert (tmp_path / "job.log.1").exists()
    assert (tmp_path / "job.log.2").exists()
    assert not (tmp_path / "job.log.3").exists()


def test_emit_log_drops_empty_fields(recording_logger):
    emit_log(recording_logger, level="INFO", msg="job_end", deleted=2, cancelled=None)
    emit_log(None, level="INFO", msg="ignored")

    assert recording_logger.records == [("INFO", "job_end", {"deleted": 2})]
