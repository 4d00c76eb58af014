from setuptools import setup, find_packages

setup(
    name="selection-committee-forecaster",
    version="0.1.0",
    description="Leave-one-season-out prediction of NCAA tournament selections and seeds",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.22.4",
        "pandas>=1.5.3",
        "scikit-learn>=1.3.0",
        "xgboost>=1.7.0",
        "optuna>=3.1.0",
        "matplotlib>=3.6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "committee-forecaster=committee_forecaster.main:main",
        ],
    },
)
