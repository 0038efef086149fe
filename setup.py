#!/usr/bin/python
from setuptools import setup, find_namespace_packages

setup(
      name='pyessh',
      version='1.0.0',
      description='Extended ssh command with connection hooks and parallel tasks',
      author='pyessh developers',
      license='MIT',
      # 子包沿用隐式命名空间包的布局
      packages=find_namespace_packages(include=["pyessh", "pyessh.*"], exclude=["pyessh.tests", "pyessh.tests.*"]),
      include_package_data=True,
      zip_safe=False,
      # 安装依赖的其他包
      install_requires = [
        "click",
        "Jinja2",
        "PyYAML",
        "marshmallow",
        "marshmallow-dataclass",
        "rich",
        "httpx",
      ],
      extras_require={
        "test": [
            "pytest",
        ],
      },
    # 安装后，命令行执行 `essh` 相当于调用 pyessh.__main__ 中的 main 方法
    entry_points={
        'console_scripts':[
            'essh = pyessh.__main__:main'
        ]
    },
    python_requires='>=3.8'
)
