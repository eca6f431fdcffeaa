import os

from ghttpping.main import app

if __name__ == "__main__":
    import uvicorn

    host = os.getenv("GHTTPPING_HOST", "127.0.0.1")
    port = int(os.getenv("GHTTPPING_PORT", "4010"))
    uvicorn.run(app, host=host, port=port, log_level="info")
