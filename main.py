"""Application entrypoint."""

import uvicorn


def main() -> None:
    """Serve the AV Desk API locally.

    Returns
    -------
    None
        Blocks until the server stops.
    """
    uvicorn.run("avdesk.main:app", host="127.0.0.1", port=8000, reload=True)


if __name__ == "__main__":
    main()
