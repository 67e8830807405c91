# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

"""pyftpclient installer.

$ python setup.py install
"""

import ast
import os
import sys

WINDOWS = os.name == "nt"

# Test deps, installable via `pip install .[test]`.
TEST_DEPS = [
    "psutil",
    "pyftpdlib",
    "pytest",
    "pytest-instafail",
    "pytest-xdist",
    "setuptools",
]

# Development deps, installable via `pip install .[dev]`.
DEV_DEPS = [
    "black",
    "check-manifest",
    "coverage",
    "pylint",
    "pytest-cov",
    "pytest-xdist",
    "rstcheck",
    "ruff",
    "toml-sort",
    "twine",
]
if WINDOWS:
    DEV_DEPS.extend(["pyreadline3", "pdbpp"])


def get_version():
    INIT = os.path.abspath(
        os.path.join(os.path.dirname(__file__), "pyftpclient", "__init__.py")
    )
    with open(INIT) as f:
        for line in f:
            if line.startswith("__ver__"):
                ret = ast.literal_eval(line.strip().split(" = ")[1])
                assert ret.count(".") == 2, ret
                for num in ret.split("."):
                    assert num.isdigit(), ret
                return ret
        raise ValueError("couldn't find version string")


with open("README.rst") as f:
    long_description = f.read()


def main():
    from setuptools import setup  # noqa: PLC0415

    kwargs = dict(
        name="pyftpclient",
        version=get_version(),
        description="Minimal RFC-959 FTP client with cancellable calls",
        long_description=long_description,
        long_description_content_type="text/x-rst",
        license="MIT",
        platforms="Platform Independent",
        author="pyftpclient contributors",
        packages=["pyftpclient"],
        # fmt: off
        keywords=["ftp", "client", "passive", "epsv", "pasv", "python",
                  "rfc959", "rfc2428", "cancellation", "timeout"],
        # fmt: on
        install_requires=[],
        extras_require={
            "dev": DEV_DEPS,
            "test": TEST_DEPS,
        },
        python_requires=">=3.8",
        zip_safe=False,
        classifiers=[
            "Development Status :: 4 - Beta",
            "Intended Audience :: Developers",
            "Operating System :: OS Independent",
            "Programming Language :: Python",
            "Topic :: Internet :: File Transfer Protocol (FTP)",
            "Topic :: Software Development :: Libraries :: Python Modules",
            "Programming Language :: Python :: 3",
        ],
    )
    setup(**kwargs)


if sys.version_info[0] < 3:  # noqa: UP036
    sys.exit("Python 2 is not supported.")

if __name__ == "__main__":
    main()
