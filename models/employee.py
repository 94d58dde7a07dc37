"""Employee model matching the MySQL variant of samples/employees.sql.

``table_to_schema(Employee.__table__, Dialect.MYSQL)`` yields the same
canonical schema as parsing that statement.
"""

from sqlalchemy import Column, Date, Integer, String
from sqlalchemy.dialects import mysql

from models.base import Base

COLLATION = "utf8mb4_unicode_ci"


class Employee(Base):
    """员工表"""

    __tablename__ = "employees"
    __table_args__ = {
        "comment": "员工表",
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": COLLATION,
    }

    emp_no = Column(Integer, primary_key=True, autoincrement=False, nullable=False, comment="员工编号")
    birth_date = Column(Date, nullable=False, comment="生日")
    first_name = Column(String(14, collation=COLLATION), nullable=False, server_default='""', comment="姓")
    last_name = Column(String(16, collation=COLLATION), nullable=False, server_default="默认值测试", comment="名")
    gender = Column(mysql.ENUM("M", "F", collation=COLLATION), nullable=False, comment="性别")
    hire_date = Column(Date, nullable=False, comment="入职日期")
