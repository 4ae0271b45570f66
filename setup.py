"""Setup configuration for ticketdash"""

from setuptools import setup, find_packages

setup(
    name="ticket-eval-dashboard",
    version="0.1.0",
    description=(
        "CLI dashboard for evaluated support tickets: score distribution, "
        "agent performance, response times and chat replay."
    ),
    author="Ticket Evaluation Dashboard Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "ticket-eval-dashboard=ticketdash.main:main",
        ],
    },
)
