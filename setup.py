"""
Setup script for the Retrieval_Ops package.
"""

from setuptools import setup, find_packages

setup(
    name="retrieval_ops",
    version="0.1.0",
    description="Hybrid vector and keyword retrieval with result fusion",
    author="Shubham Singh",
    author_email="shubh2014shiv@gmail.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["client", "retrieval_ops_exceptions"],
    install_requires=[
        "pymilvus>=2.3.0",
        "numpy>=1.20.0",
        "pydantic>=2.0.0,<3.0.0",
        "pydantic-settings>=2.0.0",
        "pydantic-yaml>=1.1.0",
        "pyyaml>=6.0",
        "redis>=5.0.1",  # For the external result cache tier
        "tenacity>=8.0.0",  # For retry logic
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-cov>=4.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "mypy>=1.0.0",
            "flake8>=6.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
)
