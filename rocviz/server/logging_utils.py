# rocviz/server/logging_utils.py
import csv, logging, os, time

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


# one CSV row per import/derive call so runs can be reviewed later
def log_roc_run(path, source, n_curves, n_points, decision):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    row = [time.strftime("%Y-%m-%d %H:%M:%S"), source, n_curves, n_points, decision]
    header = ["timestamp", "source", "n_curves", "n_points", "decision"]
    write_header = not os.path.exists(path)
    with open(path, "a", newline="") as f:
        w = csv.writer(f)
        if write_header:
            w.writerow(header)
        w.writerow(row)
