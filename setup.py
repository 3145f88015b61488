from setuptools import setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="netblock",
    version="0.1.0",
    description="Block or allow network access for individual programs using Windows Firewall",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=["netblock"],
    package_dir={"netblock": "src"},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Microsoft :: Windows",
        "Topic :: System :: Networking :: Firewalls",
    ],
    python_requires=">=3.7",
    install_requires=[
        "psutil>=5.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "netblock=netblock.cli:main",
        ],
    },
)
