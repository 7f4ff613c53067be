from setuptools import setup, find_packages


setup(
    name="voxcluster",
    version="0.1.0",
    description="Cluster media comments into fine and coarse themes using embeddings",
    author="..",
    author_email="your.email@example.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"voxcluster": ["config.yaml"]},
    install_requires=[
        line.strip()
        for line in open("requirements.txt")
        if line.strip() and not line.startswith("#")
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["voxcluster=voxcluster.cli:main"],
    },
    python_requires=">=3.9",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
