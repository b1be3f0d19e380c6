"""Tests for product list loading."""

from pathlib import Path

import pandas as pd
import pytest

from ai_content_writer.models import ProductRecord
from ai_content_writer.product_loader import (
    ProductLoadError,
    load_products,
    load_products_from_csv,
    load_products_from_excel,
)


@pytest.fixture
def sample_products_csv(tmp_path: Path) -> Path:
    csv_path = tmp_path / "products.csv"
    csv_path.write_text(
        "ID,Product Name,Short Description,Price,Categories,Tags,In Stock,Featured\n"
        '10,Red Running Shoes,Light road shoe,"$1,299.00",Shoes;Running,red|road,yes,yes\n'
        "11,Blue Hat,,19.5,Hats,winter,no,no\n"
        ",,,,,,,\n"
        "12,Trail Shoes,,120,Shoes,,out of stock,no\n",
        encoding="utf-8",
    )
    return csv_path


@pytest.fixture
def sample_products_excel(tmp_path: Path) -> Path:
    excel_path = tmp_path / "products.xlsx"
    pd.DataFrame({
        "title": ["Red Running Shoes", "Blue Hat"],
        "price": [89.99, 19.5],
        "category": ["Shoes", "Hats"],
    }).to_excel(excel_path, index=False)
    return excel_path


class TestLoadProductsFromCSV:
    """Tests for CSV product loading."""

    def test_load_valid_csv(self, sample_products_csv: Path):
        """Test loading a catalog export with loosely named columns."""
        products = load_products_from_csv(sample_products_csv)

        assert len(products) == 3
        assert all(isinstance(p, ProductRecord) for p in products)
        red = products[0]
        assert red.id == 10
        assert red.name == "Red Running Shoes"
        assert red.short_description == "Light road shoe"
        assert red.price == 1299.0
        assert red.categories == ["Shoes", "Running"]
        assert red.tags == ["red", "road"]
        assert red.featured

    def test_stock_flags(self, sample_products_csv: Path):
        """Test that stock columns accept yes/no and status words."""
        products = {p.id: p for p in load_products_from_csv(sample_products_csv)}

        assert products[10].in_stock
        assert not products[11].in_stock
        assert products[12].stock_status == "outofstock"

    def test_rows_without_name_are_skipped(self, sample_products_csv: Path):
        products = load_products_from_csv(sample_products_csv)

        assert [p.id for p in products] == [10, 11, 12]

    def test_missing_ids_use_row_position(self, tmp_path: Path):
        csv_path = tmp_path / "no_ids.csv"
        csv_path.write_text("name,price\nFirst,1\nSecond,2\n", encoding="utf-8")

        products = load_products_from_csv(csv_path)

        assert [p.id for p in products] == [1, 2]
        assert products[0].in_stock
        assert not products[0].featured

    def test_duplicate_ids_raise(self, tmp_path: Path):
        csv_path = tmp_path / "dupes.csv"
        csv_path.write_text("id,name\n1,First\n1,Second\n", encoding="utf-8")

        with pytest.raises(ProductLoadError, match="Duplicate product id 1"):
            load_products_from_csv(csv_path)

    def test_unparsable_price_is_none(self, tmp_path: Path):
        csv_path = tmp_path / "prices.csv"
        csv_path.write_text("name,price\nMystery,call us\n", encoding="utf-8")

        assert load_products_from_csv(csv_path)[0].price is None

    def test_load_nonexistent_csv(self, tmp_path: Path):
        """Test loading a non-existent file raises error."""
        with pytest.raises(ProductLoadError, match="File not found"):
            load_products_from_csv(tmp_path / "nonexistent.csv")

    def test_load_csv_without_name_column(self, tmp_path: Path):
        """Test loading CSV without a product name column."""
        csv_path = tmp_path / "bad.csv"
        csv_path.write_text("sku,price\nA1,10\n", encoding="utf-8")

        with pytest.raises(ProductLoadError, match="No product name column found"):
            load_products_from_csv(csv_path)

    def test_load_empty_csv(self, tmp_path: Path):
        """Test loading empty CSV raises error."""
        csv_path = tmp_path / "empty.csv"
        csv_path.write_text("name\n", encoding="utf-8")

        with pytest.raises(ProductLoadError, match="Product file is empty"):
            load_products_from_csv(csv_path)

    def test_latin1_fallback(self, tmp_path: Path):
        csv_path = tmp_path / "latin1.csv"
        csv_path.write_bytes("name\nCaf\xe9 Mug\n".encode("latin-1"))

        assert load_products_from_csv(csv_path)[0].name == "Caf\xe9 Mug"


class TestLoadProductsFromExcel:
    """Tests for Excel product loading."""

    def test_load_valid_excel(self, sample_products_excel: Path):
        """Test loading a valid Excel file."""
        products = load_products_from_excel(sample_products_excel)

        assert [p.name for p in products] == ["Red Running Shoes", "Blue Hat"]
        assert products[0].price == 89.99
        assert products[1].categories == ["Hats"]

    def test_load_nonexistent_excel(self, tmp_path: Path):
        with pytest.raises(ProductLoadError, match="File not found"):
            load_products_from_excel(tmp_path / "nonexistent.xlsx")


class TestLoadProducts:
    """Tests for format dispatch."""

    def test_dispatch_by_suffix(self, sample_products_csv: Path, sample_products_excel: Path):
        assert len(load_products(sample_products_csv)) == 3
        assert len(load_products(sample_products_excel)) == 2

    def test_unsupported_format(self, tmp_path: Path):
        with pytest.raises(ProductLoadError, match="Unsupported file format: .txt"):
            load_products(tmp_path / "products.txt")
