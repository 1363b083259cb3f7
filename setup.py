"""Setup configuration for kit-store-cart project."""

from setuptools import setup, find_packages

setup(
    name="kit-store-cart",
    version="1.0.0",
    description="Shopping cart service for an electronics kits and components storefront",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["view_carts"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.109.0",
        "uvicorn>=0.27.0",
        "redis>=5.0.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.26",
        ],
    },
)
