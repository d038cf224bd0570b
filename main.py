import os
import uvicorn


def run_backend():
    uvicorn.run(
        "filevault.main:app",
        host=os.getenv("FILEVAULT_HOST", "0.0.0.0"),
        port=int(os.getenv("FILEVAULT_PORT", "8000")),
        reload=False
    )


if __name__ == "__main__":
    run_backend()
