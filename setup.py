from setuptools import find_packages, setup

setup(
    name="ratelimit_handler",
    version="0.1.0",
    packages=find_packages(exclude=["ratelimit_handler_tests", "ratelimit_handler_tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "tenacity>=8.2",
        "requests",
        "pydantic>=2",
        "python-dotenv",
    ],
    extras_require={"dev": ["pytest", "pytest-asyncio"]},
)
