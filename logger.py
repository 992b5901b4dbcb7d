# logger.py
import os, time, pathlib, threading

LOG_PATH = pathlib.Path(os.environ.get("MAXSAT_SA_LOG", "benchmark.log"))
LEVELS = {"DBG": 10, "INFO": 20, "WARN": 30, "ERROR": 40, "RESULT": 50}
_min_level = LEVELS["DBG"]
_lock = threading.Lock()

def set_log_path(path) -> None:
    global LOG_PATH
    LOG_PATH = pathlib.Path(path)

def set_level(level: str) -> None:
    global _min_level
    _min_level = LEVELS[level]

def log(msg: str, level: str = "INFO"):
    if LEVELS.get(level, LEVELS["INFO"]) < _min_level:
        return
    ts = time.strftime("%Y-%m-%d %H:%M:%S")
    line = f"{ts} | {level:<5} | {msg}"
    with _lock:
        print(line, flush=True)
        LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with LOG_PATH.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
