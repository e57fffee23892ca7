"""
Result Renderer.

Turns report rows into the admin table (a display model plus its HTML
markup) and into CSV exports.
"""
import csv
import io
from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import Iterable, Optional

from internal.domain.errors import DomainValidationError
from internal.domain.product import ProductRecord, format_stock_quantity, is_low_stock
from internal.domain.value_objects import ExportScope
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


NO_RESULTS_BELOW_THRESHOLD = "No products found below the specified stock threshold."
NO_RESULTS = "No products found with the selected criteria."

CSV_FILENAME_PREFIX = "inventory-insights"
CSV_TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"

STOCK_BELOW_THRESHOLD = "stock-below-threshold"
STOCK_NOT_MANAGED = "stock-not-managed"
STOCK_NEEDED = "stock-needed"

ACTION_QUANTITY = "quantity"
ACTION_ENABLE_STOCK = "enable_stock"


def threshold_set(min_stock: Optional[int]) -> bool:
    return min_stock is not None


def export_filename(scope: ExportScope, now: Optional[datetime] = None) -> str:
    """Suggested CSV file name embedding the export scope and a timestamp."""
    now = now or datetime.now()
    return f"{CSV_FILENAME_PREFIX}-{scope.value}-{now.strftime(CSV_TIMESTAMP_FORMAT)}.csv"


@dataclass
class ResultRow:
    """
    Display model of one table row.

    Attributes:
        product_id: Product identifier (also the bulk-select checkbox value).
        name: Product name.
        edit_url: Link target of the name.
        image_url: Thumbnail, None renders a "No Image" placeholder.
        sku: SKU text, "-" when empty.
        categories: Joined category names, "-" when none.
        stock: Stock cell text.
        stock_class: CSS class of the stock cell.
        needed: Needed cell text, None when the column is hidden.
        needed_class: CSS class of the needed cell.
        action: ``quantity`` (stepper) or ``enable_stock`` (button).
        quantity: Stepper value for tracked stock.
        managing_stock: Whether stock is tracked.
    """

    product_id: int
    name: str
    edit_url: str
    image_url: Optional[str]
    sku: str
    categories: str
    stock: str
    stock_class: str
    needed: Optional[str]
    needed_class: str
    action: str
    quantity: Optional[int]
    managing_stock: bool


@dataclass
class ResultsTable:
    """
    Display model of a report.

    ``empty_message`` is set (and ``rows`` empty) when there is nothing to
    show.
    """

    columns: list[str]
    rows: list[ResultRow] = field(default_factory=list)
    show_needed: bool = False
    empty_message: Optional[str] = None

    def to_html(self) -> str:
        """Render the table markup."""
        if self.empty_message is not None:
            return f'<div class="no-results">{escape(self.empty_message)}</div>'

        parts = ['<table class="inventory-results-table">', "<thead>", "<tr>"]
        parts.append(
            '<th class="bulk-select-column">'
            '<input type="checkbox" id="select-all-checkbox" title="Select All"></th>'
        )
        parts.extend(f"<th>{escape(column)}</th>" for column in self.columns)
        parts.extend(["</tr>", "</thead>", "<tbody>"])
        parts.extend(self._row_html(row) for row in self.rows)
        parts.extend(["</tbody>", "</table>"])
        return "".join(parts)

    def _row_html(self, row: ResultRow) -> str:
        pid = escape(str(row.product_id))
        cells = [
            f'<tr data-product-id="{pid}" data-managing-stock="{"1" if row.managing_stock else "0"}">',
            f'<td class="bulk-select-column"><input type="checkbox" class="product-checkbox" value="{pid}"></td>',
        ]

        if row.image_url:
            cells.append(
                f'<td><img src="{escape(row.image_url)}" class="product-image" alt="{escape(row.name)}"></td>'
            )
        else:
            cells.append('<td><div class="product-image product-image-placeholder">No Image</div></td>')

        cells.append(
            f'<td><strong><a href="{escape(row.edit_url)}" target="_blank">{escape(row.name)}</a></strong></td>'
        )
        cells.append(f"<td>{escape(row.sku)}</td>")
        cells.append(f"<td>{escape(row.categories)}</td>")
        cells.append(self._span_cell(row.stock, row.stock_class))

        if self.show_needed:
            cells.append(self._span_cell(row.needed or "-", row.needed_class))

        cells.append('<td class="actions-column">')
        if row.action == ACTION_ENABLE_STOCK:
            cells.append(
                f'<button class="button button-small enable-stock-btn" data-product-id="{pid}">Enable Stock</button>'
            )
        else:
            cells.append(
                '<div class="quantity-controls">'
                f'<button class="button button-small quantity-decrease" data-product-id="{pid}" title="Decrease quantity">-</button>'
                f'<input type="number" class="quantity-input" data-product-id="{pid}" value="{escape(str(row.quantity))}" min="0" />'
                f'<button class="button button-small quantity-increase" data-product-id="{pid}" title="Increase quantity">+</button>'
                "</div>"
            )
        cells.append("</td></tr>")
        return "".join(cells)

    @staticmethod
    def _span_cell(text: str, css_class: str) -> str:
        if css_class:
            return f'<td><span class="{css_class}">{escape(text)}</span></td>'
        return f"<td>{escape(text)}</td>"


class ResultRenderer:
    """Renders report rows for the admin table and for CSV export."""

    def render_table(
        self, products: list[ProductRecord], min_stock: Optional[int]
    ) -> ResultsTable:
        """
        Build the table display model.

        The "Stock Needed" column only exists when a threshold is set.
        """
        show_needed = threshold_set(min_stock)
        columns = ["Image", "Product Name", "SKU", "Categories", "Current Stock"]
        if show_needed:
            columns.append("Stock Needed")
        columns.append("Actions")

        if not products:
            return ResultsTable(
                columns=columns,
                show_needed=show_needed,
                empty_message=NO_RESULTS_BELOW_THRESHOLD if show_needed else NO_RESULTS,
            )

        rows = [self._row(p, min_stock, show_needed) for p in products]
        return ResultsTable(columns=columns, rows=rows, show_needed=show_needed)

    def _row(
        self, product: ProductRecord, min_stock: Optional[int], show_needed: bool
    ) -> ResultRow:
        if not product.managing_stock:
            stock, stock_class = "Not managed", STOCK_NOT_MANAGED
            needed, needed_class = "-", STOCK_NOT_MANAGED
        else:
            stock = format_stock_quantity(product.stock_quantity)
            stock_class = (
                STOCK_BELOW_THRESHOLD if is_low_stock(product.stock_quantity, min_stock) else ""
            )
            if product.needed_quantity > 0:
                needed, needed_class = f"+{product.needed_quantity}", STOCK_NEEDED
            else:
                needed, needed_class = "-", ""

        return ResultRow(
            product_id=product.id,
            name=product.name,
            edit_url=product.edit_url,
            image_url=product.image_url,
            sku=product.sku or "-",
            categories=", ".join(product.categories) or "-",
            stock=stock,
            stock_class=stock_class,
            needed=needed if show_needed else None,
            needed_class=needed_class if show_needed else "",
            action=ACTION_QUANTITY if product.managing_stock else ACTION_ENABLE_STOCK,
            quantity=product.stock_quantity if product.managing_stock else None,
            managing_stock=product.managing_stock,
        )

    def render_html(self, products: list[ProductRecord], min_stock: Optional[int]) -> str:
        return self.render_table(products, min_stock).to_html()

    def render_csv(
        self,
        products: list[ProductRecord],
        min_stock: Optional[int],
        export_scope: ExportScope = ExportScope.ALL,
        selected_ids: Optional[Iterable[int]] = None,
    ) -> bytes:
        """
        Serialize rows as CSV.

        Columns: Product Name, SKU, Categories, Current Stock, Stock Needed
        (only with a threshold), Product ID.

        Args:
            products: The filtered rows, in report order.
            min_stock: Report threshold.
            export_scope: Whole filtered set, or only the selected ids.
            selected_ids: Product ids to keep for a ``selected`` export.

        Returns:
            UTF-8 encoded CSV.

        Raises:
            DomainValidationError: For a ``selected`` export with no ids.
        """
        rows = self.select(products, export_scope, selected_ids)
        show_needed = threshold_set(min_stock)

        header = ["Product Name", "SKU", "Categories", "Current Stock"]
        if show_needed:
            header.append("Stock Needed")
        header.append("Product ID")

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(header)
        for product in rows:
            line = [
                product.name,
                product.sku,
                ", ".join(product.categories),
                "" if product.stock_quantity is None else product.stock_quantity,
            ]
            if show_needed:
                line.append(product.needed_quantity)
            line.append(product.id)
            writer.writerow(line)

        logger.info(
            "CSV rendered",
            scope=export_scope.value,
            rows=len(rows),
            with_needed=show_needed,
        )
        return output.getvalue().encode("utf-8")

    @staticmethod
    def select(
        products: list[ProductRecord],
        export_scope: ExportScope,
        selected_ids: Optional[Iterable[int]] = None,
    ) -> list[ProductRecord]:
        """Apply the export scope, keeping report order."""
        if export_scope != ExportScope.SELECTED:
            return list(products)

        wanted = set(selected_ids or ())
        if not wanted:
            raise DomainValidationError(
                "Please select at least one product to export.",
                field="selected_product_ids",
            )
        return [p for p in products if p.id in wanted]
