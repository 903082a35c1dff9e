import logging

from django.contrib.auth import login
from django.contrib.auth.views import LoginView, LogoutView
from django.http import JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_GET, require_http_methods

from opsdesk.api import form_errors, json_error, merged_form_data, parse_json
from .decorators import admin_required, api_login_required
from .forms import AdminUserCreateForm, AdminUserUpdateForm, CustomUserCreationForm
from .models import CustomUser

logger = logging.getLogger(__name__)


class CustomLoginView(LoginView):
    template_name = 'accounts/login.html'
    redirect_authenticated_user = True


class CustomLogoutView(LogoutView):
    pass


def register_view(request):
    if request.method == 'POST':
        form = CustomUserCreationForm(request.POST)
        if form.is_valid():
            user = form.save()
            logger.info("Registered user %s", user.email)
            login(request, user)
            return redirect('pricing:index')
    else:
        form = CustomUserCreationForm()
    return render(request, 'accounts/register.html', {'form': form})


@require_GET
@api_login_required
def me(request):
    """Current user without the password hash."""
    return JsonResponse(request.user.to_dict())


@require_http_methods(["GET", "POST"])
@admin_required
def user_list(request):
    """
    GET: All users, oldest first
    POST: Create a user with any email domain and an explicit role
    """
    if request.method == 'GET':
        users = CustomUser.objects.order_by('date_joined')
        return JsonResponse([u.to_dict() for u in users], safe=False)

    form = AdminUserCreateForm(parse_json(request))
    if not form.is_valid():
        return json_error("Invalid user data", errors=form_errors(form))
    user = form.save()
    logger.info("User %s created by %s", user.email, request.user.email)
    return JsonResponse(user.to_dict(), status=201)


@require_http_methods(["GET", "PATCH"])
@admin_required
def user_detail(request, pk):
    user = get_object_or_404(CustomUser, pk=pk)
    if request.method == 'GET':
        return JsonResponse(user.to_dict())

    payload = parse_json(request)
    form = AdminUserUpdateForm(
        merged_form_data(user, AdminUserUpdateForm, payload), instance=user
    )
    if not form.is_valid():
        return json_error("Invalid user data", errors=form_errors(form))
    if user == request.user and not form.cleaned_data['is_active']:
        return json_error("You cannot deactivate your own account")
    user = form.save()
    logger.info("User %s updated by %s", user.email, request.user.email)
    return JsonResponse(user.to_dict())
