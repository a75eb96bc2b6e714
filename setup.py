from setuptools import setup, find_packages

setup(
    name="phosphenesim",
    version="0.1.0",
    description="Real-time simulation of prosthetic phosphene vision with habituation and Gaussian rendering",
    author="PhospheneSim Contributors",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "torch>=1.13.0",
        "numpy>=1.21.0",
        "PyYAML>=6.0",
        "tqdm>=4.60",
        "matplotlib>=3.5",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=3.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "phosphenesim=phosphenesim.cli:main",
        ],
    },
)
