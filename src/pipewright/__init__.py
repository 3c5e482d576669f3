"""
pipewright - wire a local repository to a CI/CD pipeline that deploys to Azure.
"""

__version__ = "0.1.0"
