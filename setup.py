from setuptools import setup, find_packages

setup(
    name="pathcore",
    version="0.1.0",
    description="Robot path authoring core: Bezier paths, uniform trajectories, undo history",
    packages=find_packages(include=["pathcore", "pathcore.*"]),
    py_modules=["main", "doctor"],
    include_package_data=True,
    package_data={"": ["*.json"]},
    install_requires=[],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "pathcore=main:main",
        ],
    },
    python_requires=">=3.8",
)
