from setuptools import setup, find_packages

setup(
    name="queue-simulator",
    version="0.1.0",
    description="Timer-driven simulation of customers queueing at parallel service counters",
    author="adamfilli",
    packages=find_packages(include=["queuesimulator", "queuesimulator.*"]),
    install_requires=[
        "matplotlib",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
