# setup.py
from setuptools import setup, find_packages

setup(
    name="sql_gateway",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "sqlalchemy>=2.0",
        "psycopg2-binary",
        "pydantic>=2.5",
        "fastapi",
        "starlette",
        "limits>=3.0",
        "uvicorn",
        "python-dotenv",
        "pyyaml",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
