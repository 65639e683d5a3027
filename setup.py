"""Package the runroute route synthesis engine and its HTTP API."""
from setuptools import find_packages, setup

setup(
    name="runroute",
    version="0.1.0",
    description="Runner route synthesis on top of a public street router",
    packages=find_packages(include=["runroute", "runroute.*"]),
    python_requires=">=3.9",
    install_requires=[
        "requests",
        "geopy",
        "numpy",
        "polyline",
        "gpxpy",
        "python-dotenv",
        "fastapi",
        "pydantic",
        "uvicorn",
    ],
    extras_require={"test": ["pytest", "httpx"]},
    entry_points={
        "console_scripts": [
            "runroute=runroute.__main__:main",
            "runroute-server=runroute.server:main",
        ],
    },
)
