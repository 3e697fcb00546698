"""
Quick demo script: run Mind Growth Classroom locally.

Usage:
    python scripts/run_demo.py
"""

import uvicorn


def main():
    print("=" * 60)
    print("  Mind Growth Classroom: social-conflict practice game")
    print("=" * 60)
    print()
    print("Starting server at http://localhost:8000")
    print("Set API_KEY (and optionally GOOGLE_SHEET_ID, GOOGLE_SERVICE_ACCOUNT_EMAIL,")
    print("GOOGLE_PRIVATE_KEY) in the environment or a .env file.")
    print()
    print("API docs: http://localhost:8000/docs")
    print("Press Ctrl+C to stop.")
    print()

    uvicorn.run(
        "mindgrowth.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
