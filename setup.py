from setuptools import setup, find_packages

setup(
    name="stride_pipeline",
    version="0.1",
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.9',
    install_requires=[
        'numpy>=1.21.0',
        'pandas>=2.0.0',
        'scipy>=1.7.0',
        'scikit-learn>=0.24.0',
        'joblib>=1.0.0',
        'openpyxl>=3.0.0'
    ],
    extras_require={
        'test': ['pytest>=7.0']
    }
)
