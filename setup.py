from setuptools import setup, find_packages

setup(
    name="probbreedpy",
    version="0.1.0",
    author="Python Implementation of ProbBreed",
    author_email="",
    description="Probabilities of superior performance in multi-environment trials",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.19.0",
        "pandas>=1.0.0",
        "matplotlib>=3.2.0",
        "joblib>=0.16.0",
    ],
    extras_require={
        "test": ["pytest>=6.0"],
    },
    include_package_data=True,
)
