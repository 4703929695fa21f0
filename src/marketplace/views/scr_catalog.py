import dataclasses
from typing import Tuple

from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import DataTable, Input, Markdown, Select

from marketplace.db.models import Category, Product
from marketplace.db.products import ProductSort
from marketplace.utils.pure import format_money, generate_markdown_table
from marketplace.viewmodels import HomeState, HomeViewModel, ProductViewModel, SearchViewModel
from marketplace.viewmodels.search import SORT_OPTIONS
from marketplace.views.base_screen import BaseScreen
from marketplace.views.modal_prod_detail import ProdDetailModal


class CatalogScreen(BaseScreen):
    """
    Product browsing for customers: category listing, live search and the
    featured/new panel.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("fn+shift+1", "noop", "View Product", show=True, key_display="⏎"),
    ]

    COLUMNS = ("ID", "Name", "Price", "Rating", "Stock")

    def __init__(self):
        super().__init__()
        self.products_vm: ProductViewModel | None = None
        self.search_vm: SearchViewModel | None = None
        self.home_vm: HomeViewModel | None = None
        self._categories: Tuple[Category, ...] = ()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-catalog"):
            with Vertical(id="div-catalog-main"):
                yield Input(id="input-search", placeholder="Start typing to search products...")
                with Horizontal(id="hort-filters"):
                    yield Select([], prompt="All categories", id="select-category")
                    yield Select(
                        [(label, sort) for label, sort in SORT_OPTIONS.items()],
                        value=ProductSort.RELEVANCE,
                        allow_blank=False,
                        id="select-sort",
                    )
                yield DataTable(id="table-products")
            yield Markdown("", id="md-featured")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(*self.COLUMNS)
        self.query_one("#input-search").focus()

    async def bind_view_models(self) -> None:
        c = self.container
        self.products_vm = self.own(ProductViewModel(c.products, c.get_products, c.add_to_cart))
        self.search_vm = self.own(SearchViewModel(c.products))
        self.home_vm = self.own(HomeViewModel(c.products, c.config.recent_limit))

        self.products_vm.observe(lambda _: self.render_listing())
        self.search_vm.observe(lambda _: self.render_listing())
        self.home_vm.observe(self.render_home)

        await self.home_vm.start()
        await self.products_vm.start()

    def _visible_products(self) -> Tuple[Product, ...]:
        if self.search_vm.state.query.strip():
            return self.search_vm.state.results
        return self.products_vm.state.products

    def render_listing(self) -> None:
        if self.products_vm is None or self.search_vm is None:
            return
        for vm in (self.products_vm, self.search_vm):
            if vm.state.error:
                self.notify(vm.state.error, severity="error")
                vm.clear_error()

        categories = self.products_vm.state.categories
        if categories != self._categories:
            self._categories = categories
            self.query_one("#select-category", Select).set_options(
                [(c.name, c.id) for c in categories]
            )

        table = self.query_one(DataTable)
        table.clear()
        table.add_rows(
            (p.id, p.name, format_money(p.effective_price), f"{p.rating:.1f}", p.stock)
            for p in self._visible_products()
        )

    @work(exclusive=True, group="render-home")
    async def render_home(self, state: HomeState) -> None:
        md = "### Featured\n\n"
        md += generate_markdown_table(
            ["Product", "Rating"],
            [[p.name, f"{p.rating:.1f}"] for p in state.featured],
            ["l", "r"],
        )
        md += "\n\n### New Arrivals\n\n"
        md += generate_markdown_table(
            ["Product", "Price"],
            [[p.name, format_money(p.effective_price)] for p in state.recent],
            ["l", "r"],
        )
        await self.query_one("#md-featured", Markdown).update(md)

    @on(Input.Changed, "#input-search")
    def handle_query_changed(self, message: Input.Changed) -> None:
        if self.search_vm is not None:
            self.search_vm.set_query(message.value)

    @on(Select.Changed, "#select-category")
    @work(exclusive=True, group="filter")
    async def handle_category_changed(self, event: Select.Changed) -> None:
        if self.products_vm is None:
            return
        category = None if event.value == Select.BLANK else event.value
        await self.products_vm.filter_by_category(category)
        await self.search_vm.set_filters(category=category)

    @on(Select.Changed, "#select-sort")
    @work(exclusive=True, group="filter")
    async def handle_sort_changed(self, event: Select.Changed) -> None:
        if self.products_vm is None:
            return
        await self.products_vm.apply_filter(
            dataclasses.replace(self.products_vm.state.product_filter, sort=event.value)
        )
        await self.search_vm.set_sort(event.value)

    @work()
    async def on_key(self, event: events.Key) -> None:
        table = self.query_one(DataTable)
        if event.key == "enter" and self.focused == table and table.row_count:
            pid = table.get_row_at(table.cursor_row)[0]
            await self.app.push_screen_wait(ProdDetailModal(pid))
