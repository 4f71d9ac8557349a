from setuptools import setup, find_packages

__package_name__ = "boolbasin"
__description__ = "This package finds the attractors and basins of attraction of regulatory networks given by Boolean rules, weighted threshold interactions or noisy weighted dynamics."

__version__ = open("boolbasin/_version.py", "rt").read().split('\'')[1]

setup(
      name = __package_name__,
      version = __version__,
      description = __description__,
      long_description = __description__,
      
      license = "MIT",
      
      packages = find_packages(exclude=["tests", "tests.*"]),
      
      classifiers = [
          "Programming Language :: Python :: 3",
      ],
      
      install_requires = [
          "numpy",
          "networkx>=3.1",
          "scipy",
          "pandas"
      ],
      
      extras_require = {
          "test": ["pytest"],
      }
)
