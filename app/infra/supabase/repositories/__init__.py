"""Repository factory and exports"""
from supabase import Client
from .tenants import TenantRepository
from .users import AppUserRepository
from .subscriptions import SubscriptionRepository
from .price_map import PriceMapRepository
from .feature_requests import FeatureRequestRepository, FeatureVoteRepository
from .referrals import ReferralCodeRepository, ReferralRepository


class RepositoryFactory:
    """Factory for creating repository instances"""
    
    def __init__(self, client: Client):
        self._client = client
        self._tenants: TenantRepository = None
        self._users: AppUserRepository = None
        self._subscriptions: SubscriptionRepository = None
        self._price_map: PriceMapRepository = None
        self._feature_requests: FeatureRequestRepository = None
        self._feature_votes: FeatureVoteRepository = None
        self._referral_codes: ReferralCodeRepository = None
        self._referrals: ReferralRepository = None
    
    @property
    def tenants(self) -> TenantRepository:
        """Get tenant repository"""
        if self._tenants is None:
            self._tenants = TenantRepository(self._client)
        return self._tenants
    
    @property
    def users(self) -> AppUserRepository:
        """Get application user repository"""
        if self._users is None:
            self._users = AppUserRepository(self._client)
        return self._users
    
    @property
    def subscriptions(self) -> SubscriptionRepository:
        """Get subscription repository"""
        if self._subscriptions is None:
            self._subscriptions = SubscriptionRepository(self._client)
        return self._subscriptions
    
    @property
    def price_map(self) -> PriceMapRepository:
        """Get Stripe price map repository"""
        if self._price_map is None:
            self._price_map = PriceMapRepository(self._client)
        return self._price_map
    
    @property
    def feature_requests(self) -> FeatureRequestRepository:
        """Get feature request repository"""
        if self._feature_requests is None:
            self._feature_requests = FeatureRequestRepository(self._client)
        return self._feature_requests
    
    @property
    def feature_votes(self) -> FeatureVoteRepository:
        """Get feature vote repository"""
        if self._feature_votes is None:
            self._feature_votes = FeatureVoteRepository(self._client)
        return self._feature_votes
    
    @property
    def referral_codes(self) -> ReferralCodeRepository:
        """Get referral code repository"""
        if self._referral_codes is None:
            self._referral_codes = ReferralCodeRepository(self._client)
        return self._referral_codes
    
    @property
    def referrals(self) -> ReferralRepository:
        """Get referral repository"""
        if self._referrals is None:
            self._referrals = ReferralRepository(self._client)
        return self._referrals


__all__ = [
    'RepositoryFactory',
    'TenantRepository',
    'AppUserRepository',
    'SubscriptionRepository',
    'PriceMapRepository',
    'FeatureRequestRepository',
    'FeatureVoteRepository',
    'ReferralCodeRepository',
    'ReferralRepository',
]
