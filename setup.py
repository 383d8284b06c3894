"""Package setup for Portfolio Growth Simulator."""

from setuptools import setup, find_packages

setup(
    name="portfolio-growth-simulator",
    version="1.0.0",
    author="Taofik Bishi",
    description="Monte Carlo simulation of portfolio growth from historical returns",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24.0",
        "pandas>=2.2.0",
        "matplotlib>=3.7.0",
        "rich>=13.0.0",
        "yfinance>=0.2.40",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "portfolio-sim=portfolio_simulator.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Office/Business :: Financial :: Investment",
    ],
)
