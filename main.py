# main.py
"""
Application entrypoint. Run from project root:
    uvicorn main:app
"""
import uvicorn

from group_builder.main import app  # noqa: F401

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
