from setuptools import setup, find_packages

setup(
    name="bone_enhancement",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["run_enhancement"],
    install_requires=[
        'numpy',
        'SimpleITK',
        'tqdm'
    ],
    extras_require={
        'test': [
            'pytest'
        ]
    },
    python_requires=">=3.8",
)
