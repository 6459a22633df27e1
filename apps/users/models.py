"""
Accounts
Merchants sign in with their email address. Each account owns at most one
shop (Shop.owner) and one subscription (Subscription.owner).
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class CustomUserManager(BaseUserManager):
    """Email-keyed manager used by allauth signup and createsuperuser"""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError(_('An email address is required'))

        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('role', CustomUser.ROLE_MERCHANT)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Staff account for the Django admin site.
        Note: the admin role alone does not bypass the subscription gate,
        that is decided by ADMIN_EMAILS.
        """
        extra_fields.setdefault('role', CustomUser.ROLE_ADMIN)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        for flag in ('is_staff', 'is_superuser'):
            if extra_fields.get(flag) is not True:
                raise ValueError(_('Superuser must have %(flag)s=True.') % {'flag': flag})

        return self._create_user(email, password, **extra_fields)


class CustomUser(AbstractBaseUser, PermissionsMixin):
    ROLE_MERCHANT = 'merchant'
    ROLE_ADMIN = 'admin'

    ROLE_CHOICES = (
        (ROLE_MERCHANT, 'Merchant'),
        (ROLE_ADMIN, 'Admin'),
    )

    email = models.EmailField(
        _('email address'),
        unique=True,
        error_messages={
            'unique': _('An account with this email already exists.'),
        },
    )
    display_name = models.CharField(
        _('display name'),
        max_length=100,
        blank=True,
        help_text=_('Shown on the dashboard. Defaults to the email address.')
    )
    role = models.CharField(
        _('role'),
        max_length=10,
        choices=ROLE_CHOICES,
        default=ROLE_MERCHANT,
    )
    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)
    is_staff = models.BooleanField(
        _('staff status'),
        default=False,
        help_text=_('Can log into the Django admin site.')
    )
    is_active = models.BooleanField(
        _('active'),
        default=True,
        help_text=_('Inactive accounts cannot sign in. Deactivate instead of deleting, orders keep their shop.')
    )

    objects = CustomUserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = _('account')
        verbose_name_plural = _('accounts')
        ordering = ['-date_joined']
        db_table = 'users_customuser'

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.display_name or self.email

    def get_short_name(self):
        return self.display_name or self.email.split('@')[0]

    @property
    def is_merchant(self):
        return self.role == self.ROLE_MERCHANT

    @property
    def has_shop(self):
        return hasattr(self, 'shop')
