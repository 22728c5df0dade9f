import uvicorn

from endcat.utils.logging import setup_logging

if __name__ == "__main__":
    setup_logging("endcat.log")
    uvicorn.run("endcat.main:app", host="127.0.0.1", port=3012, log_config=None, log_level=None)
