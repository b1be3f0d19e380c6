"""
Product list loading from CSV and Excel files.

Used by the CLI to feed the product matcher from a catalog export.
Column names are matched loosely (case, spaces and dashes ignored).
"""

import re
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

from .models import ProductRecord


class ProductLoadError(Exception):
    """Raised when product loading fails."""
    pass


# Common column name variations for catalog exports
ID_COLUMN_VARIANTS = ["id", "product_id", "post_id", "ID"]
NAME_COLUMN_VARIANTS = ["name", "product_name", "title", "product"]
DESCRIPTION_COLUMN_VARIANTS = ["description", "long_description", "content"]
SHORT_DESCRIPTION_COLUMN_VARIANTS = ["short_description", "short_desc", "excerpt", "summary"]
PRICE_COLUMN_VARIANTS = ["price", "sale_price", "regular_price", "current_price"]
SKU_COLUMN_VARIANTS = ["sku", "product_sku"]
CATEGORY_COLUMN_VARIANTS = ["categories", "category", "product_cat", "product_categories"]
TAG_COLUMN_VARIANTS = ["tags", "tag", "product_tag", "product_tags"]
URL_COLUMN_VARIANTS = ["url", "permalink", "link", "product_url"]
IMAGE_COLUMN_VARIANTS = ["image", "image_url", "images", "thumbnail"]
STOCK_COLUMN_VARIANTS = ["in_stock", "stock_status", "instock", "stock", "availability"]
FEATURED_COLUMN_VARIANTS = ["featured", "is_featured"]

# Catalog exports separate multi-valued cells with ";", "," or "|"
LIST_SEPARATOR = re.compile(r"[;,|]")


def _normalize_column_name(name: str) -> str:
    """Normalize column name for matching."""
    return str(name).lower().strip().replace(" ", "_").replace("-", "_")


def _find_column(df: pd.DataFrame, variants: list[str]) -> Optional[str]:
    """
    Find a column in the DataFrame matching one of the variant names.

    Args:
        df: The DataFrame to search.
        variants: List of possible column name variants.

    Returns:
        The actual column name if found, None otherwise.
    """
    normalized_columns = {_normalize_column_name(col): col for col in df.columns}

    for variant in variants:
        normalized = _normalize_column_name(variant)
        if normalized in normalized_columns:
            return normalized_columns[normalized]

    return None


def _cell(row: pd.Series, column: Optional[str]) -> Any:
    if column is None or pd.isna(row[column]):
        return None
    return row[column]


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _split_list(value: Any) -> list[str]:
    if value is None:
        return []
    return [part.strip() for part in LIST_SEPARATOR.split(str(value)) if part.strip()]


def _parse_price(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(str(value).replace("$", "").replace(",", "").strip())
    except ValueError:
        return None


def _parse_flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    flag = str(value).strip().lower()
    if flag in ("true", "yes", "1", "y", "instock", "in stock", "in_stock", "available"):
        return True
    if flag in ("false", "no", "0", "n", "outofstock", "out of stock", "out_of_stock", "unavailable"):
        return False
    return default


def load_products_from_csv(file_path: Union[str, Path]) -> list[ProductRecord]:
    """
    Load products from a CSV file.

    Args:
        file_path: Path to the CSV file.

    Returns:
        List of ProductRecord objects.

    Raises:
        ProductLoadError: If the file cannot be read or parsed.
    """
    path = Path(file_path)

    if not path.exists():
        raise ProductLoadError(f"File not found: {file_path}")

    try:
        try:
            df = pd.read_csv(path, encoding="utf-8")
        except UnicodeDecodeError:
            # Fall back to latin-1
            df = pd.read_csv(path, encoding="latin-1")
    except (OSError, ValueError) as e:
        raise ProductLoadError(f"Failed to read CSV file: {e}") from e

    return _parse_product_dataframe(df)


def load_products_from_excel(file_path: Union[str, Path], sheet_name: Optional[str] = None) -> list[ProductRecord]:
    """
    Load products from an Excel file.

    Args:
        file_path: Path to the Excel file (.xlsx or .xls).
        sheet_name: Optional sheet name to read from. Defaults to first sheet.

    Raises:
        ProductLoadError: If the file cannot be read or parsed.
    """
    path = Path(file_path)

    if not path.exists():
        raise ProductLoadError(f"File not found: {file_path}")

    try:
        if sheet_name:
            df = pd.read_excel(path, sheet_name=sheet_name)
        else:
            df = pd.read_excel(path)
    except (OSError, ValueError, KeyError) as e:
        raise ProductLoadError(f"Failed to read Excel file: {e}") from e

    return _parse_product_dataframe(df)


def _parse_product_dataframe(df: pd.DataFrame) -> list[ProductRecord]:
    """
    Parse a DataFrame into a list of ProductRecord objects.

    Rows without a name are skipped. Rows without a usable id are numbered
    by their position in the file, starting at 1.

    Raises:
        ProductLoadError: If the name column is missing or no rows are usable.
    """
    if df.empty:
        raise ProductLoadError("Product file is empty")

    name_col = _find_column(df, NAME_COLUMN_VARIANTS)
    if name_col is None:
        raise ProductLoadError(
            f"No product name column found. Expected one of: {', '.join(NAME_COLUMN_VARIANTS)}. "
            f"Found columns: {', '.join(str(c) for c in df.columns)}"
        )

    id_col = _find_column(df, ID_COLUMN_VARIANTS)
    description_col = _find_column(df, DESCRIPTION_COLUMN_VARIANTS)
    short_col = _find_column(df, SHORT_DESCRIPTION_COLUMN_VARIANTS)
    price_col = _find_column(df, PRICE_COLUMN_VARIANTS)
    sku_col = _find_column(df, SKU_COLUMN_VARIANTS)
    category_col = _find_column(df, CATEGORY_COLUMN_VARIANTS)
    tag_col = _find_column(df, TAG_COLUMN_VARIANTS)
    url_col = _find_column(df, URL_COLUMN_VARIANTS)
    image_col = _find_column(df, IMAGE_COLUMN_VARIANTS)
    stock_col = _find_column(df, STOCK_COLUMN_VARIANTS)
    featured_col = _find_column(df, FEATURED_COLUMN_VARIANTS)

    products: list[ProductRecord] = []
    seen_ids: set[int] = set()

    for position, (_, row) in enumerate(df.iterrows(), start=1):
        name = _text(_cell(row, name_col))
        if not name:
            continue

        product_id = position
        raw_id = _cell(row, id_col)
        if raw_id is not None:
            try:
                product_id = int(float(raw_id))
            except (ValueError, TypeError):
                pass
        if product_id in seen_ids:
            raise ProductLoadError(f"Duplicate product id {product_id} in row {position}")
        seen_ids.add(product_id)

        in_stock = _parse_flag(_cell(row, stock_col), default=True)
        products.append(
            ProductRecord(
                id=product_id,
                name=name,
                description=_text(_cell(row, description_col)),
                short_description=_text(_cell(row, short_col)),
                price=_parse_price(_cell(row, price_col)),
                sku=_text(_cell(row, sku_col)),
                categories=_split_list(_cell(row, category_col)),
                tags=_split_list(_cell(row, tag_col)),
                url=_text(_cell(row, url_col)),
                image=_text(_cell(row, image_col)),
                in_stock=in_stock,
                stock_status="instock" if in_stock else "outofstock",
                featured=_parse_flag(_cell(row, featured_col), default=False),
            )
        )

    if not products:
        raise ProductLoadError("No valid products found in file")

    return products


def load_products(file_path: Union[str, Path], sheet_name: Optional[str] = None) -> list[ProductRecord]:
    """
    Load products from a CSV or Excel file.

    Automatically detects file type based on extension.

    Args:
        file_path: Path to the product file.
        sheet_name: Optional sheet name for Excel files.

    Returns:
        List of ProductRecord objects.

    Raises:
        ProductLoadError: If the file cannot be read or is invalid.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".csv":
        return load_products_from_csv(path)
    elif suffix in (".xlsx", ".xls"):
        return load_products_from_excel(path, sheet_name)
    else:
        raise ProductLoadError(
            f"Unsupported file format: {suffix}. Supported formats: .csv, .xlsx, .xls"
        )
