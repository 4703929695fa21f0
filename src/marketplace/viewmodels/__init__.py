from marketplace.viewmodels.admin import AdminState, AdminViewModel, DashboardStats
from marketplace.viewmodels.auth import AuthState, AuthViewModel
from marketplace.viewmodels.base import ViewModel
from marketplace.viewmodels.cart import CartState, CartViewModel
from marketplace.viewmodels.home import HomeState, HomeViewModel
from marketplace.viewmodels.order import OrderState, OrderViewModel
from marketplace.viewmodels.product import ProductState, ProductViewModel
from marketplace.viewmodels.search import SearchState, SearchViewModel
from marketplace.viewmodels.user import UserState, UserViewModel

__all__ = [
    "AdminState",
    "AdminViewModel",
    "AuthState",
    "AuthViewModel",
    "CartState",
    "CartViewModel",
    "DashboardStats",
    "HomeState",
    "HomeViewModel",
    "OrderState",
    "OrderViewModel",
    "ProductState",
    "ProductViewModel",
    "SearchState",
    "SearchViewModel",
    "UserState",
    "UserViewModel",
    "ViewModel",
]
