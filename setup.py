from setuptools import setup, find_packages

setup(
    name="remindme",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "sqlalchemy",
        "pydantic",
        "pydantic-settings",
        "python-dotenv",
        "prometheus-client>=0.17",
        "pytest",
    ],
)
